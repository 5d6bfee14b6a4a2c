import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from storesync.database import Base, get_db
from storesync.models import product, order, sync_log  # noqa: F401
from storesync.crud.store import SqlAlchemyStore
from storesync.services.erpnext_client import ErpNextClient
from mock_erpnext.mock_server import create_mock_app, MOCK_API_KEY, MOCK_API_SECRET

ERP_URL = "http://erp.test"

@pytest.fixture
def db():
    """Чистая SQLite в памяти на каждый тест"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()

@pytest.fixture
def store(db):
    return SqlAlchemyStore(db)

@pytest.fixture
def erp_app():
    return create_mock_app()

@pytest.fixture
def erp_client(erp_app):
    """Клиент ERPNext, обращающийся к мок-серверу внутри процесса"""
    with TestClient(erp_app) as http:
        yield ErpNextClient(
            base_url=ERP_URL,
            api_key=MOCK_API_KEY,
            api_secret=MOCK_API_SECRET,
            http_client=http
        )

@pytest.fixture
def api_client(db, erp_client):
    from storesync.main import app
    from storesync.api.deps import get_erp_client

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_erp_client] = lambda: erp_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
