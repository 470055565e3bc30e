"""
Money helpers.

Amounts are Decimal from the database to the reporting boundary; hours are
plain floats. Amounts and hours are rounded only when they leave the ledger.

Usage:
    from hourledger.utils.money import amount_for_hours, round_amount, round_hours

    amount_for_hours(1.5, Decimal("1200.00"))  -> Decimal("1800.000")
    round_amount(Decimal("1234.5"))            -> 1235
    round_hours(2.25)                          -> 2.3
"""
from decimal import Decimal, ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Decimal for an int / float / str / Decimal amount (floats via their shortest repr)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def amount_for_hours(hours, price_per_hour) -> Decimal:
    """Value of `hours` at `price_per_hour`."""
    return to_decimal(hours) * to_decimal(price_per_hour)


def round_amount(amount) -> int:
    """Round a monetary amount to an integer, halves away from zero."""
    return int(to_decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_hours(hours, places: int = 1) -> float:
    """Round an hour figure to `places` decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(to_decimal(hours).quantize(quantum, rounding=ROUND_HALF_UP))
