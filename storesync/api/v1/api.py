# storesync/api/v1/api.py
from fastapi import APIRouter
from storesync.api.v1.endpoints import sync, orders

api_router = APIRouter()
api_router.include_router(sync.router, tags=["sync"])
api_router.include_router(orders.router, tags=["orders"])
