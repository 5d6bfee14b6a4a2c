# storesync/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storesync.api.v1.api import api_router
from storesync.core.config import settings
from storesync.core.logging_config import setup_logging
from storesync.database import create_tables
from storesync.services.erpnext_client import NotConfiguredError, RemoteError
from storesync.services.order_sync import UnresolvedReferenceError
from storesync.services.orders import OrderNumberConflictError
from storesync.services.sync_guard import SyncInProgressError

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Инициализация БД
    create_tables()
    yield

# Создаем app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Storefront ERPNext synchronization service",
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Ошибки интеграции -> HTTP ответы
@app.exception_handler(NotConfiguredError)
async def not_configured_handler(request: Request, exc: NotConfiguredError):
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "configured": False}
    )

@app.exception_handler(RemoteError)
async def remote_error_handler(request: Request, exc: RemoteError):
    return JSONResponse(
        status_code=502,
        content={"detail": str(exc), "remote_status": exc.status_code, "remote_body": exc.body}
    )

@app.exception_handler(UnresolvedReferenceError)
async def unresolved_reference_handler(request: Request, exc: UnresolvedReferenceError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "unresolved_items": exc.item_names}
    )

@app.exception_handler(SyncInProgressError)
async def sync_in_progress_handler(request: Request, exc: SyncInProgressError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "kind": exc.kind})

@app.exception_handler(OrderNumberConflictError)
async def order_number_conflict_handler(request: Request, exc: OrderNumberConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})

# Подключаем роутеры
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {"message": f"{settings.PROJECT_NAME} v{settings.VERSION}", "status": "ok"}

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "storesync-api",
        "erpnext_configured": settings.erpnext_configured
    }
