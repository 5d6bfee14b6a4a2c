# storesync/api/deps.py
from typing import Generator
from fastapi import Depends
from sqlalchemy.orm import Session
from storesync.database import get_db
from storesync.crud.store import SqlAlchemyStore
from storesync.services.erpnext_client import ErpNextClient

def get_store(db: Session = Depends(get_db)) -> SqlAlchemyStore:
    """Локальное хранилище поверх сессии запроса"""
    return SqlAlchemyStore(db)

def get_erp_client() -> Generator[ErpNextClient, None, None]:
    """Клиент ERPNext из настроек, закрывается после запроса"""
    client = ErpNextClient.from_settings()
    try:
        yield client
    finally:
        client.close()
