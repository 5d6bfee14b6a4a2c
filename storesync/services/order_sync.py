import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Callable
from pydantic import ValidationError
from storesync.core.config import settings, Settings
from storesync.crud.store import LocalStore
from storesync.models.order import Order, OrderSource
from storesync.schemas.erpnext import ErpSalesOrder
from storesync.schemas.order import LineItem, parse_line_items, serialize_line_items
from storesync.services.erpnext_client import ErpNextClient, ErpNextError, NotConfiguredError
from storesync.services.order_numbers import fallback_order_number
from storesync.services.record_matcher import MatchKey, RecordMatcher
from storesync.services.status_translator import from_erp_status, to_erp_status
from storesync.services.sync_guard import sync_guard
from storesync.services.sync_result import SyncResult
from storesync.utils.money import to_minor_units

logger = logging.getLogger(__name__)

SALES_ORDER = "Sales Order"
SALES_ORDER_FIELDS = [
    "name", "customer_name", "contact_phone", "contact_email", "status",
    "grand_total", "items", "shipping_address_name", "po_no",
]

ORDER_MATCHER = RecordMatcher([
    MatchKey("erpnext_id", lambda o: o.erpnext_id, lambda so: so.name, strong=True),
    MatchKey("order_number", lambda o: o.order_number, lambda so: so.po_no),
])

class UnresolvedReferenceError(ErpNextError):
    """Для позиций заказа не найден код товара ERPNext"""
    def __init__(self, item_names: List[str]):
        self.item_names = list(item_names)
        super().__init__(
            f"Cannot sync order to ERPNext: missing ERPNext item codes for: {', '.join(self.item_names)}. "
            f"Sync products from ERPNext first."
        )

@dataclass
class PushResult:
    status: str                        # "pushed" | "skipped" | "already_pushed"
    erpnext_id: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

class OrderSyncEngine:
    """Отправка локальных заказов в ERPNext и загрузка заказов из ERPNext"""

    def __init__(
        self,
        client: ErpNextClient,
        store: LocalStore,
        config: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.client = client
        self.store = store
        self.config = config or settings
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # Отправка заказа

    def resolve_item_codes(self, items: List[LineItem]) -> List[Dict[str, Any]]:
        """Позиции заказа -> позиции Sales Order; все или ничего"""
        products = self.store.list_products()
        resolved = []
        unresolved = []

        for item in items:
            item_code = item.erpnext_item_code
            if not item_code:
                product = next(
                    (p for p in products
                     if p.erpnext_item_code and item.name in (p.name, p.name_en)),
                    None
                )
                item_code = product.erpnext_item_code if product else None

            if not item_code:
                unresolved.append(item.name)
            else:
                resolved.append({"item_code": item_code, "qty": item.quantity, "rate": item.price})

        if unresolved:
            raise UnresolvedReferenceError(unresolved)
        return resolved

    def build_sales_order(self, order: Order, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        delivery_date = self.clock() + timedelta(days=self.config.DELIVERY_LEAD_DAYS)
        return {
            "doctype": SALES_ORDER,
            "customer": order.customer_name,
            "contact_phone": order.customer_phone,
            "contact_email": order.customer_email or "",
            "po_no": order.order_number,
            "delivery_date": delivery_date.date().isoformat(),
            "items": items,
        }

    def push_order(self, order: Order) -> PushResult:
        """Создать Sales Order в ERPNext; без настроек - пропуск, не ошибка"""
        if not self.client.is_configured:
            logger.warning(f"ERPNext not configured, skipping push of order {order.order_number}")
            return PushResult(status="skipped")

        if order.erpnext_id:
            logger.info(f"Order {order.order_number} already in ERPNext as {order.erpnext_id}, not pushing again")
            return PushResult(status="already_pushed", erpnext_id=order.erpnext_id)

        with sync_guard(f"order_push:{order.id}"):
            items = self.resolve_item_codes(parse_line_items(order.items))
            sales_order = self.build_sales_order(order, items)

            data = self.client.insert(SALES_ORDER, sales_order)
            erpnext_id = data.get("name")
            logger.info(f"Order {order.order_number} pushed to ERPNext as {erpnext_id}")
            return PushResult(status="pushed", erpnext_id=erpnext_id)

    def push_order_status(self, order: Order) -> bool:
        """Передать статус заказа в ERPNext; False если отправка не нужна"""
        if not self.client.is_configured or not order.erpnext_id:
            return False

        self.client.update(SALES_ORDER, order.erpnext_id, {"status": to_erp_status(order.status)})
        logger.info(f"Order {order.order_number} status '{order.status}' sent to ERPNext")
        return True

    # Загрузка заказов

    def _new_order_fields(self, sales_order: ErpSalesOrder, taken_numbers: set) -> Dict[str, Any]:
        order_number = sales_order.po_no or fallback_order_number(
            self.clock(), taken_numbers, self.config.ERP_ORDER_NUMBER_PREFIX
        )
        items = [
            LineItem(
                name=item.item_name or item.item_code or "unknown",
                quantity=max(1, round(item.qty)),
                price=to_minor_units(item.rate),
                erpnext_item_code=item.item_code,
            )
            for item in sales_order.items
        ]
        return {
            "order_number": order_number,
            "customer_name": sales_order.customer_name or sales_order.customer or "",
            "customer_phone": sales_order.contact_phone or "",
            "customer_email": sales_order.contact_email,
            "status": from_erp_status(sales_order.status).value,
            "total_amount": to_minor_units(sales_order.grand_total),
            "items": serialize_line_items(items),
            "shipping_address": sales_order.shipping_address_name,
            "source": OrderSource.ERPNEXT.value,
            "erpnext_id": sales_order.name,
        }

    def pull_orders(self) -> SyncResult:
        if not self.client.is_configured:
            raise NotConfiguredError()

        with sync_guard("orders_pull"):
            logger.info("Starting order pull from ERPNext")
            raw_orders = self.client.get_list(
                SALES_ORDER,
                fields=SALES_ORDER_FIELDS,
                limit_page_length=self.config.ERP_ORDERS_PAGE_SIZE,
            )
            orders = self.store.list_orders()
            taken_numbers = {o.order_number for o in orders}

            result = SyncResult()
            for raw_order in raw_orders:
                try:
                    sales_order = ErpSalesOrder.model_validate(raw_order)
                except ValidationError as e:
                    logger.warning(f"Skipping malformed ERPNext sales order {raw_order.get('name')!r}: {e}")
                    result.skipped += 1
                    continue

                match = ORDER_MATCHER.match(orders, sales_order)
                if match:
                    if not match.strong:
                        result.weak_matches += 1
                        logger.warning(
                            f"Order {match.record.order_number} matched ERPNext order {sales_order.name} "
                            f"by weak key '{match.key}'"
                        )
                    # Синхронизация владеет только статусом и ссылкой на ERPNext
                    self.store.upsert_order(match.record.id, {
                        "status": from_erp_status(sales_order.status).value,
                        "erpnext_id": sales_order.name,
                    })
                    result.updated += 1
                else:
                    try:
                        fields = self._new_order_fields(sales_order, taken_numbers)
                    except ValidationError as e:
                        # Например, строка скидки с отрицательной ценой
                        logger.warning(f"Skipping ERPNext sales order {sales_order.name} with unmappable items: {e}")
                        result.skipped += 1
                        continue
                    created = self.store.upsert_order(None, fields)
                    # Поправки одного заказа в ERPNext несут тот же po_no
                    orders.append(created)
                    taken_numbers.add(created.order_number)
                    result.created += 1

            logger.info(
                f"Order pull completed: created={result.created}, updated={result.updated}, "
                f"weak_matches={result.weak_matches}, skipped={result.skipped}"
            )
            return result
