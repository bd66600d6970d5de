"""Session-scoped Postgres container and per-test schema for integration tests."""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime

import pytest
import pytest_asyncio
from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from testcontainers.postgres import PostgresContainer

from crudkit.db import SqlRepository
from tests.support import Gadget, Owner


class Base(DeclarativeBase):
    pass


class OwnerRow(Base):
    __tablename__ = "owners"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str]


class GadgetRow(Base):
    __tablename__ = "gadgets"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str]
    size: Mapped[int] = mapped_column(default=0)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("owners.id"))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    owner: Mapped[OwnerRow | None] = relationship()


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Start a throwaway Postgres for the session."""
    with PostgresContainer("postgres:16-alpine", driver="asyncpg") as container:
        yield container


@pytest.fixture(scope="session")
def test_db_url(postgres_container: PostgresContainer) -> str:
    """Async connection URL for the test database."""
    return postgres_container.get_connection_url()


@pytest_asyncio.fixture
async def database(test_db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test engine with a freshly created schema."""
    engine = create_async_engine(test_db_url, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_repository(database: AsyncEngine) -> SqlRepository:
    """SqlRepository over the per-test engine."""
    return SqlRepository(database, {Owner: OwnerRow, Gadget: GadgetRow})
