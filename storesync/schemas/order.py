# storesync/schemas/order.py
import json
import logging
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from typing import Optional, List
from datetime import datetime
from storesync.models.order import OrderStatus, OrderSource

logger = logging.getLogger(__name__)

# Позиция заказа (хранится внутри заказа)
class LineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: int = Field(..., ge=0)
    erpnext_item_code: Optional[str] = Field(None, alias="erpnextItemCode")

_line_items_adapter = TypeAdapter(List[LineItem])

def parse_line_items(raw: Optional[str]) -> List[LineItem]:
    """Десериализация позиций заказа; битый JSON дает пустой список"""
    try:
        data = json.loads(raw or "[]")
    except ValueError:
        logger.warning(f"Order items are not valid JSON: {raw!r:.80}")
        return []
    return _line_items_adapter.validate_python(data)

def serialize_line_items(items: List[LineItem]) -> str:
    return json.dumps(
        [item.model_dump(by_alias=True, exclude_none=True) for item in items],
        ensure_ascii=False,
    )

# Создание заказа
class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    customer_email: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    total_amount: Optional[int] = Field(None, ge=0)
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    source: OrderSource = OrderSource.WEBSITE
    push_to_erp: bool = False

    def computed_total(self) -> int:
        if self.total_amount is not None:
            return self.total_amount
        return sum(item.price * item.quantity for item in self.items)

# Смена статуса
class OrderStatusUpdate(BaseModel):
    status: OrderStatus

# Ответ API
class OrderResponse(BaseModel):
    id: int
    order_number: str
    status: OrderStatus
    customer_name: str
    customer_phone: str
    customer_email: Optional[str]
    items: str
    total_amount: int
    shipping_address: Optional[str]
    tracking_number: Optional[str]
    source: Optional[str]
    erpnext_id: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
