from celery import Celery
from storesync.core.config import settings
from storesync.core.logging_config import setup_logging

def make_celery():
    """Создание и настройка Celery приложения"""

    setup_logging()

    celery_app = Celery(
        "storesync",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["storesync.tasks.sync_tasks"]
    )

    # Конфигурация
    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=settings.CELERY_ACCEPT_CONTENT,
        timezone=settings.CELERY_TIMEZONE,
        enable_utc=settings.CELERY_ENABLE_UTC,

        # Настройки задач
        task_track_started=True,
        task_time_limit=30 * 60,  # 30 минут
        task_soft_time_limit=25 * 60,  # 25 минут

        # Настройки брокера
        broker_connection_retry_on_startup=True,

        # Результаты
        result_expires=3600,  # 1 час

        # Расписание задач
        beat_schedule={
            'sync-products': {
                'task': 'storesync.tasks.sync_tasks.sync_products',
                'schedule': float(settings.SYNC_PRODUCTS_INTERVAL),
                'options': {'queue': 'sync'}
            },
            'pull-orders': {
                'task': 'storesync.tasks.sync_tasks.pull_orders',
                'schedule': float(settings.SYNC_ORDERS_INTERVAL),
                'options': {'queue': 'sync'}
            },
        },

        # Очереди
        task_routes={
            'storesync.tasks.sync_tasks.*': {'queue': 'sync'},
        },

        # Работники: один процесс на очередь sync, чтобы прогоны не пересекались
        worker_prefetch_multiplier=1,
        worker_max_tasks_per_child=1000,
    )

    return celery_app

# Создаем экземпляр Celery
celery_app = make_celery()
