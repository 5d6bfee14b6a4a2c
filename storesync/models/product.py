from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
import enum
from storesync.database import Base

class ProductCategory(str, enum.Enum):
    BIRD_NEST = "bird-nest"
    FISH_MAW = "fish-maw"
    DESSERT = "dessert"
    GIFT_SET = "gift-set"
    OTHER = "other"

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, index=True)        # Основное название (китайский)
    name_en = Column(Text, nullable=True)                  # Название на английском
    description = Column(Text, nullable=False, default="")
    price = Column(Integer, nullable=False)                # В минимальных единицах валюты
    price_unit = Column(String(20), default="份")
    image = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True, default=ProductCategory.OTHER.value)
    featured = Column(Boolean, default=False)

    # Код товара в ERPNext (ключ сопоставления при синхронизации)
    erpnext_item_code = Column(String(140), unique=True, index=True, nullable=True)

    # Даты
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Product {self.name} (ERPNext: {self.erpnext_item_code})>"
