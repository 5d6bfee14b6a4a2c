# storesync/api/v1/endpoints/orders.py
from fastapi import APIRouter, Depends, HTTPException, status
from storesync.api.deps import get_store, get_erp_client
from storesync.crud.store import SqlAlchemyStore
from storesync.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from storesync.schemas.sync import OrderCreatedResponse, PushResponse
from storesync.services.erpnext_client import ErpNextClient, ErpNextError, RemoteError
from storesync.services.order_sync import OrderSyncEngine, UnresolvedReferenceError
from storesync.services.orders import create_order, push_and_record
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

def _get_order_or_404(store: SqlAlchemyStore, order_id: int):
    order = store.get_order(order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order

@router.post("/orders", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_new_order(
    order_in: OrderCreate,
    store: SqlAlchemyStore = Depends(get_store),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Создание заказа; по флагу push_to_erp сразу отправляется в ERPNext"""
    order = create_order(store, order_in)

    erp_push = None
    if order_in.push_to_erp:
        # Ошибка отправки не отменяет локальный заказ
        try:
            result = push_and_record(OrderSyncEngine(client, store), order)
            erp_push = PushResponse(status=result.status, erpnext_id=result.erpnext_id)
        except UnresolvedReferenceError as e:
            erp_push = PushResponse(status="failed", error=str(e), details={"items": e.item_names})
        except RemoteError as e:
            erp_push = PushResponse(
                status="failed", error=str(e),
                details={"status_code": e.status_code, "body": e.body}
            )
        except ErpNextError as e:
            erp_push = PushResponse(status="failed", error=str(e))
        if erp_push.status == "failed":
            logger.warning(f"Order {order.order_number} created but not pushed: {erp_push.error}")

    return OrderCreatedResponse(order=OrderResponse.model_validate(order), erp_push=erp_push)

@router.post("/orders/{order_id}/push", response_model=PushResponse)
def push_existing_order(
    order_id: int,
    store: SqlAlchemyStore = Depends(get_store),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Отправка существующего заказа в ERPNext"""
    order = _get_order_or_404(store, order_id)
    result = push_and_record(OrderSyncEngine(client, store), order)
    return PushResponse(status=result.status, erpnext_id=result.erpnext_id)

@router.put("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    status_in: OrderStatusUpdate,
    store: SqlAlchemyStore = Depends(get_store),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Смена статуса заказа с передачей в ERPNext"""
    order = _get_order_or_404(store, order_id)
    order = store.upsert_order(order.id, {"status": status_in.status.value})
    OrderSyncEngine(client, store).push_order_status(order)
    return order
