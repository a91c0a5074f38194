import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./places_test.db")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.engine import make_url  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.core import config  # noqa: E402
from app.core.database.models import Base  # noqa: E402

TEST_DATABASE_NAME = "places_test.db"


@pytest_asyncio.fixture
async def engine():
    check_db_name()
    from app.core.database.engine import engine

    yield engine
    await engine.dispose()


@pytest.fixture(scope="session")
def app():
    from app.main import app as main_app

    return main_app


@pytest_asyncio.fixture
async def create(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def session(engine, create):
    async with AsyncSession(engine) as session:
        yield session


@pytest_asyncio.fixture
async def client(app, create):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def check_db_name():
    url = make_url(config.SQLALCHEMY_DATABASE_URL)
    db_name = os.path.basename(url.database or "")
    if db_name != TEST_DATABASE_NAME:
        pytest.exit(f"Database name must be {TEST_DATABASE_NAME}", returncode=1)
