# storesync/services/orders.py
import logging
from datetime import date
from typing import Optional
from storesync.core.config import settings
from storesync.crud.store import LocalStore, DuplicateRecordError
from storesync.models.order import Order, OrderStatus
from storesync.schemas.order import OrderCreate, serialize_line_items
from storesync.services.order_numbers import generate_order_number
from storesync.services.order_sync import OrderSyncEngine, PushResult

logger = logging.getLogger(__name__)

class OrderNumberConflictError(Exception):
    """Не удалось выдать свободный номер заказа"""
    pass

def create_order(
    store: LocalStore,
    order_in: OrderCreate,
    today: Optional[date] = None,
    max_attempts: Optional[int] = None
) -> Order:
    """Создание локального заказа с номером вида LY20240305001"""
    today = today or date.today()
    max_attempts = max_attempts or settings.ORDER_NUMBER_MAX_ATTEMPTS

    fields = {
        "status": OrderStatus.PENDING.value,
        "customer_name": order_in.customer_name,
        "customer_phone": order_in.customer_phone,
        "customer_email": order_in.customer_email,
        "items": serialize_line_items(order_in.items),
        "total_amount": order_in.computed_total(),
        "shipping_address": order_in.shipping_address,
        "notes": order_in.notes,
        "source": order_in.source.value,
    }

    for attempt in range(max_attempts):
        existing_numbers = [o.order_number for o in store.list_orders()]
        order_number = generate_order_number(today, existing_numbers, offset=attempt)
        try:
            order = store.upsert_order(None, {**fields, "order_number": order_number})
        except DuplicateRecordError:
            # Параллельное создание заказа или пропуск в последовательности
            logger.warning(f"Order number {order_number} already taken (attempt {attempt + 1})")
            continue
        logger.info(f"Order {order.order_number} created")
        return order

    raise OrderNumberConflictError(f"Could not allocate an order number after {max_attempts} attempts")

def push_and_record(engine: OrderSyncEngine, order: Order) -> PushResult:
    """Отправить заказ в ERPNext и сохранить выданный идентификатор"""
    result = engine.push_order(order)
    if result.status == "pushed" and result.erpnext_id:
        engine.store.upsert_order(order.id, {"erpnext_id": result.erpnext_id})
    return result
