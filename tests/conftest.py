import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from talent_pipeline.db.session import get_db, init_db
from talent_pipeline.main import app
from talent_pipeline.sync import ApiTransport, SyncEngine


@pytest.fixture
def engine():
    # One shared in-memory database for the test and the API worker threads
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def transport(client):
    return ApiTransport(base_url="http://testserver/api", session=client, timeout=None)


@pytest.fixture
def sync(transport):
    return SyncEngine(transport)


@pytest.fixture
def other_sync(transport):
    """A second, independent session against the same store."""
    return SyncEngine(transport)


@pytest.fixture
def acme_client(client):
    response = client.post("/api/clients/Acme", json={"clientName": "Globex", "status": "Open"})
    assert response.status_code == 201
    return response.json()
