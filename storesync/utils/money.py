from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

def to_minor_units(amount: Optional[Union[int, float, str]]) -> int:
    """Округление суммы из ERPNext до целых единиц (половина вверх)"""
    if amount is None:
        return 0
    return int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
