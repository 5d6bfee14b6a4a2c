import logging
from typing import Optional, Dict, Any
from pydantic import ValidationError
from storesync.core.config import settings, Settings
from storesync.crud.store import LocalStore
from storesync.models.product import ProductCategory
from storesync.schemas.erpnext import ErpItem
from storesync.services.erpnext_client import ErpNextClient, NotConfiguredError
from storesync.services.record_matcher import MatchKey, RecordMatcher
from storesync.services.sync_guard import sync_guard
from storesync.services.sync_result import SyncResult
from storesync.utils.money import to_minor_units

logger = logging.getLogger(__name__)

ITEM_FIELDS = [
    "name", "item_name", "description", "standard_rate", "stock_uom",
    "image", "item_group", "custom_featured", "custom_name_cn",
]
SALES_ITEMS_FILTER = [["is_sales_item", "=", 1]]

CATEGORY_BY_ITEM_GROUP = {
    "Bird's Nest": ProductCategory.BIRD_NEST,
    "Fish Maw": ProductCategory.FISH_MAW,
    "Dessert": ProductCategory.DESSERT,
    "Gift Set": ProductCategory.GIFT_SET,
}

def _without_item_code(product) -> bool:
    return not product.erpnext_item_code

# Названия связывают только товары, у которых еще нет кода ERPNext
PRODUCT_MATCHER = RecordMatcher([
    MatchKey("erpnext_item_code", lambda p: p.erpnext_item_code, lambda i: i.name, strong=True),
    MatchKey("name_en", lambda p: p.name_en, lambda i: i.item_name, eligible=_without_item_code),
    MatchKey("name", lambda p: p.name, lambda i: i.custom_name_cn, eligible=_without_item_code),
])

def category_from_item_group(item_group: Optional[str]) -> ProductCategory:
    """Группа товаров ERPNext -> категория; неизвестная группа -> other"""
    category = CATEGORY_BY_ITEM_GROUP.get(item_group or "")
    if category is None:
        logger.warning(f"Unmapped ERPNext item group {item_group!r}, using 'other'")
        return ProductCategory.OTHER
    return category

def map_item_to_product(item: ErpItem, config: Optional[Settings] = None) -> Dict[str, Any]:
    """Поля локального товара, которыми владеет синхронизация"""
    config = config or settings
    return {
        "name": item.custom_name_cn or item.item_name,
        "name_en": item.item_name,
        "description": item.description or "",
        "price": to_minor_units(item.standard_rate),
        "price_unit": item.stock_uom or config.DEFAULT_PRICE_UNIT,
        "image": item.image or config.DEFAULT_PRODUCT_IMAGE,
        "category": category_from_item_group(item.item_group).value,
        "featured": item.custom_featured,
        "erpnext_item_code": item.name,
    }

class ProductSyncEngine:
    """Загрузка продаваемых товаров из ERPNext в локальный каталог"""

    def __init__(self, client: ErpNextClient, store: LocalStore, config: Optional[Settings] = None):
        self.client = client
        self.store = store
        self.config = config or settings

    def sync_products(self) -> SyncResult:
        if not self.client.is_configured:
            raise NotConfiguredError()

        with sync_guard("products"):
            logger.info("Starting product sync from ERPNext")
            raw_items = self.client.get_list("Item", filters=SALES_ITEMS_FILTER, fields=ITEM_FIELDS)
            # Локальные товары читаются один раз на весь прогон
            products = self.store.list_products()

            result = SyncResult()
            for raw_item in raw_items:
                try:
                    item = ErpItem.model_validate(raw_item)
                except ValidationError as e:
                    logger.warning(f"Skipping malformed ERPNext item {raw_item.get('name')!r}: {e}")
                    result.skipped += 1
                    continue

                fields = map_item_to_product(item, self.config)
                match = PRODUCT_MATCHER.match(products, item)
                if match:
                    if not match.strong:
                        result.weak_matches += 1
                        logger.warning(
                            f"Product {match.record.id} matched ERPNext item {item.name} "
                            f"by weak key '{match.key}', please review"
                        )
                    self.store.upsert_product(match.record.id, fields)
                    result.updated += 1
                else:
                    self.store.upsert_product(None, fields)
                    result.created += 1

            logger.info(
                f"Product sync completed: created={result.created}, updated={result.updated}, "
                f"weak_matches={result.weak_matches}, skipped={result.skipped}"
            )
            return result
