# storesync/crud/product.py
from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any
from storesync.models.product import Product

def get_product(db: Session, product_id: int) -> Optional[Product]:
    """Получить товар по ID"""
    return db.query(Product).filter(Product.id == product_id).first()

def get_products(db: Session) -> List[Product]:
    """Получить все товары"""
    return db.query(Product).order_by(Product.id).all()

def upsert_product(db: Session, product_id: Optional[int], fields: Dict[str, Any]) -> Product:
    """Создать товар (product_id=None) или обновить только переданные поля"""
    if product_id is None:
        db_product = Product(**fields)
        db.add(db_product)
    else:
        db_product = get_product(db, product_id)
        if not db_product:
            raise ValueError(f"Product {product_id} not found")
        for field, value in fields.items():
            setattr(db_product, field, value)

    db.commit()
    db.refresh(db_product)
    return db_product
