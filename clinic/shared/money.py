from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")


def to_money(value: Union[Decimal, float, int, str, None]) -> Decimal:
    """Coerce to Decimal rounded half-up to cents; floats go through str to avoid binary noise"""
    if value is None:
        return Decimal("0.00")
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
