# storesync/schemas/sync.py
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from storesync.schemas.order import OrderResponse

class SyncResultResponse(BaseModel):
    created: int
    updated: int
    weak_matches: int = 0
    skipped: int = 0

class SyncLogResponse(BaseModel):
    kind: str
    status: str
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_items: int
    updated_items: int
    weak_matches: int
    error_message: Optional[str]

    class Config:
        from_attributes = True

class SyncStatusResponse(BaseModel):
    configured: bool
    last_runs: Dict[str, SyncLogResponse] = {}

class PushResponse(BaseModel):
    status: str                        # "pushed" | "skipped" | "already_pushed" | "failed"
    erpnext_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

class OrderCreatedResponse(BaseModel):
    order: OrderResponse
    erp_push: Optional[PushResponse] = None
