import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from lending.database import get_db, init_db, make_engine
from lending.main import app


@pytest.fixture
def session_factory(tmp_path):
    # Every test gets its own SQLite file
    engine = make_engine(f"sqlite:///{tmp_path / 'library.db'}")
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
