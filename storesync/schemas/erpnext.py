# storesync/schemas/erpnext.py
"""Проекции документов ERPNext, получаемых по HTTP.

Никогда не сохраняются как есть: синхронизация переводит их
в локальные поля товаров и заказов.
"""
from pydantic import BaseModel, field_validator
from typing import Optional, List

class ErpItem(BaseModel):
    """Товар (doctype Item)"""
    name: str                          # Код товара в ERPNext
    item_name: str
    description: Optional[str] = None
    standard_rate: float = 0.0
    stock_uom: Optional[str] = None
    image: Optional[str] = None
    item_group: Optional[str] = None
    custom_featured: bool = False
    custom_name_cn: Optional[str] = None

    @field_validator("standard_rate", mode="before")
    @classmethod
    def rate_not_null(cls, v):
        return 0.0 if v is None else v

    @field_validator("custom_featured", mode="before")
    @classmethod
    def featured_not_null(cls, v):
        return False if v is None else v

class ErpSalesOrderItem(BaseModel):
    item_code: Optional[str] = None
    item_name: str = ""
    qty: float = 0.0
    rate: float = 0.0

class ErpSalesOrder(BaseModel):
    """Заказ покупателя (doctype Sales Order)"""
    name: str                          # Идентификатор заказа в ERPNext
    customer: Optional[str] = None
    customer_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    status: Optional[str] = None
    grand_total: float = 0.0
    items: List[ErpSalesOrderItem] = []
    shipping_address_name: Optional[str] = None
    po_no: Optional[str] = None        # Номер локального заказа

    @field_validator("grand_total", mode="before")
    @classmethod
    def total_not_null(cls, v):
        return 0.0 if v is None else v

    @field_validator("items", mode="before")
    @classmethod
    def items_not_null(cls, v):
        return [] if v is None else v
