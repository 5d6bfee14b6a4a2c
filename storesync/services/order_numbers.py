# storesync/services/order_numbers.py
"""Номера заказов.

Локальный номер: <ПРЕФИКС><ГГГГММДД><номер за день из 3+ цифр>, где номер
за день равен количеству уже существующих номеров с тем же префиксом
и датой плюс один. Последовательность не атомарна: уникальность
обеспечивает ограничение в БД и повтор в create_order.
"""
from datetime import date, datetime, timezone
from typing import Container, Iterable, Optional
from storesync.core.config import settings

_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

def generate_order_number(
    today: date,
    existing_numbers: Iterable[Optional[str]],
    prefix: Optional[str] = None,
    offset: int = 0
) -> str:
    """Номер заказа для даты today с учетом уже выданных номеров"""
    day_prefix = f"{prefix or settings.ORDER_NUMBER_PREFIX}{today:%Y%m%d}"
    same_day = sum(1 for number in existing_numbers if number and number.startswith(day_prefix))
    return f"{day_prefix}{same_day + 1 + offset:03d}"

def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))

def fallback_order_number(
    now: Optional[datetime] = None,
    taken: Container[str] = (),
    prefix: Optional[str] = None
) -> str:
    """Номер для заказа из ERPNext без po_no: <ПРЕФИКС><метка времени в base36>"""
    now = now or datetime.now(timezone.utc)
    prefix = prefix or settings.ERP_ORDER_NUMBER_PREFIX
    millis = int(now.timestamp() * 1000)
    number = f"{prefix}{to_base36(millis)}"
    # Несколько заказов за одну миллисекунду
    while number in taken:
        millis += 1
        number = f"{prefix}{to_base36(millis)}"
    return number
