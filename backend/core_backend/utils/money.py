"""
Monetary precision helpers.

Key principles:
1. NEVER use float for money
2. Every stored amount is rounded to the currency's smallest unit
3. Rounding is half-up (0.5 always moves away from zero), matching the
   rounding cashiers see on printed receipts
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Amount = Union[Decimal, str, int, float]

ZERO = Decimal("0")

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    # Zero-decimal currencies
    "VND": 0,  # Vietnamese Dong (no subunit)
    "JPY": 0,  # Japanese Yen
    "KRW": 0,  # South Korean Won

    # 2-decimal currencies
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "THB": 2,
    "SGD": 2,
}


def currency_exponent(currency: str) -> int:
    """
    Get the number of decimal places for a currency.

    Examples:
        >>> currency_exponent("VND")
        0
        >>> currency_exponent("USD")
        2
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def quantize_decimal(currency: str) -> Decimal:
    """Smallest unit of a currency as a Decimal (1 for VND, 0.01 for USD)."""
    return Decimal(10) ** -currency_exponent(currency)


def to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        # Convert float to string first to avoid binary precision noise
        amount = str(amount)
    return Decimal(amount)


def quantize(currency: str, amount: Amount) -> Decimal:
    """
    Round to currency decimals using ROUND_HALF_UP.

    Examples:
        >>> quantize("VND", "12499.5")
        Decimal('12500')
        >>> quantize("USD", "10.125")
        Decimal('10.13')
    """
    return to_decimal(amount).quantize(quantize_decimal(currency), rounding=ROUND_HALF_UP)


def round_currency(amount: Amount) -> Decimal:
    """Round an amount in the configured engine currency."""
    from core_backend.config import app_settings

    return quantize(app_settings.currency, amount)


def clamp_non_negative(amount: Amount) -> Decimal:
    value = to_decimal(amount)
    return value if value > ZERO else ZERO
