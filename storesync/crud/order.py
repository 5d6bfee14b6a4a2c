# storesync/crud/order.py
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any
from storesync.models.order import Order

def get_order(db: Session, order_id: int) -> Optional[Order]:
    """Получить заказ по ID"""
    return db.query(Order).filter(Order.id == order_id).first()

def get_orders(db: Session) -> List[Order]:
    """Получить все заказы"""
    return db.query(Order).order_by(Order.id).all()

def upsert_order(db: Session, order_id: Optional[int], fields: Dict[str, Any]) -> Order:
    """Создать заказ (order_id=None) или обновить только переданные поля"""
    if order_id is None:
        db_order = Order(**fields)
        db.add(db_order)
    else:
        db_order = get_order(db, order_id)
        if not db_order:
            raise ValueError(f"Order {order_id} not found")
        for field, value in fields.items():
            setattr(db_order, field, value)

    db.commit()
    db.refresh(db_order)
    return db_order
