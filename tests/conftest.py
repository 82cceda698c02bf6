import os

import pytest
from httpx import ASGITransport, AsyncClient

from main import app
from models.database import build_engine, build_session_maker, drop_db, init_db
from repository.memory import InMemoryStore
from repository.sql import SqlStore
from repository.unit_of_work import UnitOfWork
from routes.deps import install_services
from services.pull_request import PullRequestService
from services.teams import TeamService
from services.users import UserService
from utils import first_candidate


# Test database URL for the SQL store tests
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow(store):
    return UnitOfWork(store)


@pytest.fixture
def pr_service(store, uow):
    return PullRequestService(store, uow, selector=first_candidate)


@pytest.fixture
def team_service(store, uow):
    return TeamService(store, uow, selector=first_candidate)


@pytest.fixture
def user_service(store):
    return UserService(store)


@pytest.fixture
async def sql_store():
    """SqlStore over a freshly created schema."""
    engine = build_engine(TEST_DATABASE_URL)
    await init_db(engine)
    try:
        yield SqlStore(build_session_maker(engine))
    finally:
        await drop_db(engine)
        await engine.dispose()


@pytest.fixture
async def client(store):
    """Create a test client over an in-memory store."""
    install_services(app, store, selector=first_candidate)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
