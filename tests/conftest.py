import pytest
from sqlalchemy.orm import Session

from mining_data.storage.database import DatabaseManager
from mining_data.storage.schema import update_schema


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'mining.db'}"


@pytest.fixture
def manager(sqlite_url):
    db = DatabaseManager(sqlite_url)
    yield db
    db.close()


@pytest.fixture
def engine(manager):
    return manager.engine


@pytest.fixture
def migrated_engine(engine):
    update_schema(engine)
    return engine


@pytest.fixture
def session(migrated_engine):
    with Session(migrated_engine) as s:
        yield s
