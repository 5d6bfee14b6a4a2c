# storesync/api/v1/endpoints/sync.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from storesync.api.deps import get_store, get_erp_client
from storesync.crud.store import SqlAlchemyStore
from storesync.crud.sync_log import get_last_sync_logs
from storesync.database import get_db
from storesync.schemas.sync import SyncResultResponse, SyncStatusResponse, SyncLogResponse
from storesync.services.erpnext_client import ErpNextClient
from storesync.services.order_sync import OrderSyncEngine
from storesync.services.product_sync import ProductSyncEngine
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/sync/status", response_model=SyncStatusResponse)
def get_sync_status(
    db: Session = Depends(get_db),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Включена ли интеграция и последние запуски синхронизации"""
    last_runs = {
        kind: SyncLogResponse.model_validate(sync_log)
        for kind, sync_log in get_last_sync_logs(db).items()
    }
    return SyncStatusResponse(configured=client.is_configured, last_runs=last_runs)

@router.post("/sync/products", response_model=SyncResultResponse)
def sync_products_endpoint(
    background: bool = Query(False, description="Run as a Celery task"),
    store: SqlAlchemyStore = Depends(get_store),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Синхронизация товаров из ERPNext"""
    if background:
        from storesync.tasks.sync_tasks import sync_products
        task = sync_products.apply_async()
        return JSONResponse(status_code=202, content={"task_id": task.id, "status": "started"})

    result = ProductSyncEngine(client, store).sync_products()
    return SyncResultResponse(**result.to_dict())

@router.post("/sync/orders", response_model=SyncResultResponse)
def sync_orders_endpoint(
    background: bool = Query(False, description="Run as a Celery task"),
    store: SqlAlchemyStore = Depends(get_store),
    client: ErpNextClient = Depends(get_erp_client)
):
    """Загрузка заказов из ERPNext"""
    if background:
        from storesync.tasks.sync_tasks import pull_orders
        task = pull_orders.apply_async()
        return JSONResponse(status_code=202, content={"task_id": task.id, "status": "started"})

    result = OrderSyncEngine(client, store).pull_orders()
    return SyncResultResponse(**result.to_dict())
