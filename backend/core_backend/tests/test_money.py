"""
Tests for monetary rounding helpers.
"""
from decimal import Decimal

from django.test import override_settings

from core_backend.config import app_settings
from core_backend.utils.money import (
    ZERO,
    clamp_non_negative,
    currency_exponent,
    quantize,
    round_currency,
    to_decimal,
)


class TestQuantize:
    def test_zero_decimal_currency_rounds_half_up(self):
        assert quantize("VND", "12499.5") == Decimal("12500")
        assert quantize("VND", "12499.4") == Decimal("12499")

    def test_two_decimal_currency(self):
        assert quantize("USD", "10.125") == Decimal("10.13")
        assert quantize("usd", "10.124") == Decimal("10.12")

    def test_unknown_currency_defaults_to_two_decimals(self):
        assert currency_exponent("XYZ") == 2

    def test_float_input_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")


class TestRoundCurrency:
    def test_uses_engine_currency(self):
        assert round_currency(Decimal("33333.3333")) == Decimal("33333")

    @override_settings(POS_ENGINE={"CURRENCY": "USD"})
    def test_follows_configured_currency(self):
        app_settings.reload()
        assert round_currency(Decimal("1.005")) == Decimal("1.01")


class TestHelpers:
    def test_clamp_non_negative(self):
        assert clamp_non_negative(Decimal("-5")) == ZERO
        assert clamp_non_negative(Decimal("5")) == Decimal("5")
