import logging
from typing import Optional
from storesync.core.config import settings

def setup_logging(level: Optional[str] = None) -> None:
    """Настройка логирования для API и воркера Celery"""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=settings.LOG_FORMAT,
    )
    # httpx пишет каждый запрос на INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
