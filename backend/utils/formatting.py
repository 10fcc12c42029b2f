from decimal import Decimal, ROUND_HALF_UP

from config import BASE_CURRENCY, CURRENCY_SYMBOL

TWO_PLACES = Decimal("0.01")


def to_money(amount) -> Decimal:
    """Round any numeric input to two decimal places (half-up)."""
    if amount is None:
        return Decimal("0.00")
    if not isinstance(amount, Decimal):
        # str() keeps floats like 0.1 from dragging binary noise along
        amount = Decimal(str(amount))
    return amount.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_currency(amount) -> str:
    """Format as e.g. "৳1,000.00 BDT"."""
    return f"{CURRENCY_SYMBOL}{to_money(amount):,.2f} {BASE_CURRENCY}"
