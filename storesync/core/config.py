from typing import Optional, List
from pydantic import model_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "StoreSync API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # База данных
    DATABASE_URL: str = "sqlite:///./storesync.db"

    # Настройки ERPNext интеграции (все три обязательны для включения)
    ERPNEXT_URL: Optional[str] = None
    ERPNEXT_API_KEY: Optional[str] = None
    ERPNEXT_API_SECRET: Optional[str] = None
    ERPNEXT_TIMEOUT: int = 30

    # Номера заказов
    ORDER_NUMBER_PREFIX: str = "LY"
    ERP_ORDER_NUMBER_PREFIX: str = "ERN"
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5

    # Параметры синхронизации
    ERP_ORDERS_PAGE_SIZE: int = 100
    DELIVERY_LEAD_DAYS: int = 7
    SYNC_PRODUCTS_INTERVAL: int = 3600  # секунды
    SYNC_ORDERS_INTERVAL: int = 300     # 5 минут

    # Значения по умолчанию для товаров из ERPNext
    DEFAULT_PRODUCT_IMAGE: str = "/attached_assets/generated_images/dried_bird's_nest_product.png"
    DEFAULT_PRICE_UNIT: str = "份"

    # Redis для Celery
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_URL: Optional[str] = None

    # Celery
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    CELERY_ACCEPT_CONTENT: List[str] = ["json"]
    CELERY_TIMEZONE: str = "Asia/Kuala_Lumpur"
    CELERY_ENABLE_UTC: bool = True

    # Настройки логирования
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    @model_validator(mode="after")
    def assemble_celery_urls(self) -> "Settings":
        if not self.REDIS_URL:
            self.REDIS_URL = f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"
        if not self.CELERY_BROKER_URL:
            self.CELERY_BROKER_URL = f"{self.REDIS_URL}/0"
        if not self.CELERY_RESULT_BACKEND:
            self.CELERY_RESULT_BACKEND = f"{self.REDIS_URL}/1"
        return self

    @property
    def erpnext_configured(self) -> bool:
        """Интеграция активна только при наличии URL и пары ключей"""
        return bool(self.ERPNEXT_URL and self.ERPNEXT_API_KEY and self.ERPNEXT_API_SECRET)

    class Config:
        case_sensitive = True
        env_file = ".env"

settings = Settings()
