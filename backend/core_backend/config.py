"""
Centralized engine configuration using the Singleton pattern.

Business code reads engine knobs through ``app_settings`` instead of reaching
into ``django.conf.settings.POS_ENGINE`` directly.
"""

from typing import Optional, Any, List
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)

DEFAULTS = {
    "CURRENCY": "VND",
    "ORDER_CODE_PREFIX": "HD",
    "ORDER_CODE_WIDTH": 6,
    "INCOME_CATEGORY_NAME": "Order revenue",
    "LOSS_CATEGORY_NAME": "Other expense",
    "LOSS_ACCOUNTED_STATUSES": ["preparing", "completed", "served"],
    "TIER_WINDOW_MONTHS": 12,
}


class AppSettings:
    """
    A LAZY singleton that exposes the POS_ENGINE settings as attributes.
    Loading is deferred until the first attribute access so importing this
    module never touches django.conf before settings are configured.
    """

    _instance: Optional["AppSettings"] = None
    _initialized: bool = False

    def __new__(cls) -> "AppSettings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def _setup(self):
        if not self._initialized:
            self.load_settings()
            self._initialized = True

    def __getattr__(self, name: str) -> Any:
        if not self._initialized:
            self._setup()

        try:
            return self.__dict__[name]
        except KeyError:
            raise AttributeError(f"'AppSettings' object has no attribute '{name}'")

    def load_settings(self) -> None:
        """Merge settings.POS_ENGINE over DEFAULTS and populate attributes."""
        configured = getattr(settings, "POS_ENGINE", {}) or {}
        unknown = set(configured) - set(DEFAULTS)
        if unknown:
            raise ImproperlyConfigured(
                f"Unknown POS_ENGINE keys: {', '.join(sorted(unknown))}"
            )

        merged = {**DEFAULTS, **configured}

        self.currency: str = merged["CURRENCY"].upper()
        self.order_code_prefix: str = merged["ORDER_CODE_PREFIX"]
        self.order_code_width: int = int(merged["ORDER_CODE_WIDTH"])
        self.income_category_name: str = merged["INCOME_CATEGORY_NAME"]
        self.loss_category_name: str = merged["LOSS_CATEGORY_NAME"]
        self.loss_accounted_statuses: List[str] = list(merged["LOSS_ACCOUNTED_STATUSES"])
        self.tier_window_months: int = int(merged["TIER_WINDOW_MONTHS"])

        logger.debug(f"Loaded POS engine settings (currency={self.currency})")

    def reload(self) -> None:
        """Force a reload on next access, e.g. after override_settings in tests."""
        for key in list(self.__dict__):
            del self.__dict__[key]
        self._initialized = False


app_settings = AppSettings()
