# storesync/services/status_translator.py
"""Перевод статусов заказа между локальным словарем и ERPNext.

Локальный -> ERPNext и обратно задается одной таблицей. Любой статус
ERPNext вне таблицы ("On Hold", "Closed", "To Pay" и т.п.) сводится
к pending: заказ не теряется и не сохраняется с чужим статусом, но
обратный перевод такого статуса дает "Draft", а не исходную строку.
"""
import logging
from typing import Optional, Union
from storesync.models.order import OrderStatus

logger = logging.getLogger(__name__)

ERP_STATUS_BY_LOCAL = {
    OrderStatus.PENDING: "Draft",
    OrderStatus.CONFIRMED: "To Deliver and Bill",
    OrderStatus.PROCESSING: "To Bill",
    OrderStatus.SHIPPED: "To Deliver",
    OrderStatus.DELIVERED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}

LOCAL_STATUS_BY_ERP = {erp: local for local, erp in ERP_STATUS_BY_LOCAL.items()}

FALLBACK_LOCAL_STATUS = OrderStatus.PENDING

def to_erp_status(status: Union[OrderStatus, str]) -> str:
    """Локальный статус -> статус ERPNext"""
    try:
        local = OrderStatus(status)
    except ValueError:
        logger.warning(f"Unknown local order status {status!r}, sending 'Draft'")
        return ERP_STATUS_BY_LOCAL[FALLBACK_LOCAL_STATUS]
    return ERP_STATUS_BY_LOCAL[local]

def from_erp_status(erp_status: Optional[str]) -> OrderStatus:
    """Статус ERPNext -> локальный статус, неизвестный статус -> pending"""
    local = LOCAL_STATUS_BY_ERP.get(erp_status or "")
    if local is None:
        logger.warning(f"Unmapped ERPNext order status {erp_status!r}, using '{FALLBACK_LOCAL_STATUS.value}'")
        return FALLBACK_LOCAL_STATUS
    return local
