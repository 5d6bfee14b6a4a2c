import logging
from typing import Dict, Any, Callable
from sqlalchemy.orm import Session
from storesync.database import SessionLocal
from storesync.crud.store import SqlAlchemyStore
from storesync.crud.sync_log import create_sync_log, finish_sync_log
from storesync.models.sync_log import SyncKind, SyncStatus
from storesync.services.erpnext_client import ErpNextClient, ErpNextError, NotConfiguredError
from storesync.services.order_sync import OrderSyncEngine
from storesync.services.orders import push_and_record
from storesync.services.product_sync import ProductSyncEngine
from storesync.services.sync_result import SyncResult
from storesync.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)

def run_logged_sync(
    db: Session,
    kind: SyncKind,
    run: Callable[[SqlAlchemyStore, ErpNextClient], SyncResult]
) -> Dict[str, Any]:
    """Запуск синхронизации с записью в sync_logs.

    NotConfigured дает "skipped", прочие ошибки интеграции - "failed";
    автоматических повторов нет, чтобы не создавать дубликаты.
    """
    sync_log = create_sync_log(db, kind)
    store = SqlAlchemyStore(db)

    try:
        with ErpNextClient.from_settings() as client:
            result = run(store, client)
    except NotConfiguredError as e:
        logger.info(f"Sync {kind.value} skipped: {e}")
        finish_sync_log(db, sync_log, SyncStatus.SKIPPED, error_message=str(e))
        return {"status": "skipped", "reason": str(e)}
    except ErpNextError as e:
        logger.error(f"Sync {kind.value} failed: {e}")
        finish_sync_log(db, sync_log, SyncStatus.FAILED, error_message=str(e))
        return {"status": "failed", "error": str(e)}
    except Exception as e:
        logger.error(f"Unexpected error during sync {kind.value}: {e}")
        finish_sync_log(db, sync_log, SyncStatus.FAILED, error_message=str(e))
        raise

    finish_sync_log(
        db, sync_log, SyncStatus.COMPLETED,
        created=result.created, updated=result.updated, weak_matches=result.weak_matches
    )
    return {"status": "completed", **result.to_dict()}

@celery_app.task
def sync_products() -> Dict[str, Any]:
    """Задача синхронизации товаров из ERPNext"""
    db: Session = SessionLocal()
    try:
        return run_logged_sync(
            db, SyncKind.PRODUCTS,
            lambda store, client: ProductSyncEngine(client, store).sync_products()
        )
    finally:
        db.close()

@celery_app.task
def pull_orders() -> Dict[str, Any]:
    """Задача загрузки заказов из ERPNext"""
    db: Session = SessionLocal()
    try:
        return run_logged_sync(
            db, SyncKind.ORDERS_PULL,
            lambda store, client: OrderSyncEngine(client, store).pull_orders()
        )
    finally:
        db.close()

@celery_app.task
def push_order(order_id: int) -> Dict[str, Any]:
    """Задача отправки локального заказа в ERPNext"""
    db: Session = SessionLocal()
    try:
        order = SqlAlchemyStore(db).get_order(order_id)
        if not order:
            logger.warning(f"Order {order_id} not found, nothing to push")
            return {"status": "failed", "error": f"Order {order_id} not found"}

        def run(store: SqlAlchemyStore, client: ErpNextClient) -> SyncResult:
            result = push_and_record(OrderSyncEngine(client, store), order)
            if result.skipped:
                raise NotConfiguredError()
            if result.status == "already_pushed":
                return SyncResult()
            return SyncResult(updated=1)

        outcome = run_logged_sync(db, SyncKind.ORDER_PUSH, run)
        db.refresh(order)
        return {**outcome, "erpnext_id": order.erpnext_id}
    finally:
        db.close()
