from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
import enum
from storesync.database import Base

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class OrderSource(str, enum.Enum):
    WEBSITE = "website"
    ERPNEXT = "erpnext"

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)

    # Покупатель
    customer_name = Column(Text, nullable=False)
    customer_phone = Column(String(40), nullable=False, default="")
    customer_email = Column(String(254), nullable=True)

    # Позиции хранятся сериализованными в JSON
    items = Column(Text, nullable=False, default="[]")
    total_amount = Column(Integer, nullable=False)  # В минимальных единицах валюты

    shipping_address = Column(Text, nullable=True)
    tracking_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Источник и связь с ERPNext
    source = Column(String(20), default=OrderSource.WEBSITE.value)
    erpnext_id = Column(String(140), index=True, nullable=True)

    # Даты
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status})>"
