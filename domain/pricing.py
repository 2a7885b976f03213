"""Pricing Calculator"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from domain.errors import InvalidDateRange
from domain.value_objects import Money, PriceQuote

CENT = Decimal("0.01")


def nights_between(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def price(price_per_night: Decimal, check_in: date, check_out: date) -> Decimal:
    """Total for the stay, rounded half-up to cents"""
    nights = nights_between(check_in, check_out)
    if nights <= 0:
        raise InvalidDateRange()
    total = Decimal(price_per_night) * nights
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def quote(price_per_night: Decimal, check_in: date, check_out: date, currency: str = "USD") -> PriceQuote:
    total = price(price_per_night, check_in, check_out)
    return PriceQuote(
        nights=nights_between(check_in, check_out),
        price_per_night=Money(amount=Decimal(price_per_night), currency=currency),
        total=Money(amount=total, currency=currency)
    )
