from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional

_TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


class TaxRate(str, Enum):
    STANDARD_20 = "standard_20"
    REDUCED_10 = "reduced_10"
    ZERO = "zero"
    REVERSE_CHARGE = "reverse_charge"


TAX_RATE_FRACTIONS = {
    TaxRate.STANDARD_20: Decimal("0.20"),
    TaxRate.REDUCED_10: Decimal("0.10"),
    TaxRate.ZERO: Decimal("0"),
    TaxRate.REVERSE_CHARGE: Decimal("0"),
}


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so floats from the driver don't drag binary noise in
    return Decimal(str(value))


def round_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def tax_fraction(rate: Any) -> Decimal:
    return TAX_RATE_FRACTIONS[TaxRate(rate)]


def compute_tax(subtotal: Decimal, rate: Any) -> Decimal:
    return round_money(to_decimal(subtotal) * tax_fraction(rate))


def resolve_document_tax_rate(customer) -> TaxRate:
    """
    Tax rate applied to every time-based line of a document.

    Precedence: reverse charge, then tax exemption, then the customer's
    default rate, then standard_20.
    """
    if customer.reverse_charge:
        return TaxRate.REVERSE_CHARGE
    if customer.tax_exempt:
        return TaxRate.ZERO
    if customer.default_tax_rate:
        return TaxRate(customer.default_tax_rate)
    return TaxRate.STANDARD_20


def effective_hourly_rate(entry_rate: Optional[Any], project_rate: Optional[Any]) -> Decimal:
    # a zero rate on the entry falls through to the project's rate
    if entry_rate:
        return to_decimal(entry_rate)
    if project_rate:
        return to_decimal(project_rate)
    return Decimal("0")
