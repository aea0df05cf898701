from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

Q2 = Decimal("0.01")
ZERO = Decimal("0.00")


def D(x) -> Decimal:
    """Money value quantized to cents (ROUND_HALF_UP). None counts as zero."""
    if x is None:
        return ZERO
    if not isinstance(x, Decimal):
        # str() first so floats coming from the client do not drag binary noise along
        x = Decimal(str(x))
    return x.quantize(Q2, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    total = ZERO
    for v in values:
        total += D(v)
    return total


def line_total(price, quantity: int) -> Decimal:
    return D(D(price) * int(quantity))
