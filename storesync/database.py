# storesync/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from storesync.core.config import settings

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# Создание движка SQLAlchemy
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,      # Проверка соединения
    connect_args=connect_args,
    echo=False               # Логи SQL (True для debug)
)

# Фабрика сессий
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Базовый класс для моделей
Base = declarative_base()

def get_db():
    """FastAPI dependency для получения сессии БД"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Создание таблиц при старте (dev)
def create_tables():
    # Импорт моделей регистрирует таблицы в metadata
    from storesync.models import product, order, sync_log  # noqa: F401
    Base.metadata.create_all(bind=engine)
