from sqlalchemy import Column, Integer, String, Text, DateTime, Float
from sqlalchemy.sql import func
import enum
from storesync.database import Base

class SyncKind(str, enum.Enum):
    PRODUCTS = "products"
    ORDERS_PULL = "orders_pull"
    ORDER_PUSH = "order_push"

class SyncStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

class SyncLog(Base):
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Детали синхронизации
    kind = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=SyncStatus.RUNNING.value)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Результаты
    created_items = Column(Integer, default=0)
    updated_items = Column(Integer, default=0)
    weak_matches = Column(Integer, default=0)

    # Ошибки
    error_message = Column(Text, nullable=True)

    # Длительность
    duration_seconds = Column(Float, nullable=True)

    def __repr__(self):
        return f"<SyncLog {self.kind} ({self.status})>"
