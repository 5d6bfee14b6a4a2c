# storesync/crud/store.py
"""Узкий интерфейс локального хранилища, через который работает синхронизация.

Движки синхронизации не выполняют запросов к БД напрямую и зависят только
от LocalStore, поэтому хранилище можно подменить.
"""
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from storesync.crud import product as crud_product
from storesync.crud import order as crud_order
from storesync.models.product import Product
from storesync.models.order import Order

class DuplicateRecordError(Exception):
    """Нарушено ограничение уникальности (код ERPNext, номер заказа)"""
    pass

class LocalStore(ABC):

    @abstractmethod
    def list_products(self) -> List[Product]:
        ...

    @abstractmethod
    def upsert_product(self, product_id: Optional[int], fields: Dict[str, Any]) -> Product:
        ...

    @abstractmethod
    def list_orders(self) -> List[Order]:
        ...

    @abstractmethod
    def upsert_order(self, order_id: Optional[int], fields: Dict[str, Any]) -> Order:
        ...

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[Order]:
        ...

class SqlAlchemyStore(LocalStore):
    """Реализация LocalStore поверх сессии SQLAlchemy"""

    def __init__(self, db: Session):
        self.db = db

    def list_products(self) -> List[Product]:
        return crud_product.get_products(self.db)

    def upsert_product(self, product_id: Optional[int], fields: Dict[str, Any]) -> Product:
        try:
            return crud_product.upsert_product(self.db, product_id, fields)
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateRecordError(str(e.orig)) from e

    def list_orders(self) -> List[Order]:
        return crud_order.get_orders(self.db)

    def upsert_order(self, order_id: Optional[int], fields: Dict[str, Any]) -> Order:
        try:
            return crud_order.upsert_order(self.db, order_id, fields)
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateRecordError(str(e.orig)) from e

    def get_order(self, order_id: int) -> Optional[Order]:
        return crud_order.get_order(self.db, order_id)
