"""Shared fixtures for tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from crudkit.cache.memory import InMemoryCacher
from crudkit.core.service import ResourceService
from crudkit.db.memory import InMemoryRepository
from tests.support import GADGET, Gadget, SpyRepository

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def in_memory_repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def repository(in_memory_repository: InMemoryRepository) -> SpyRepository:
    return SpyRepository(in_memory_repository)


@pytest.fixture
def cacher() -> InMemoryCacher:
    return InMemoryCacher()


@pytest.fixture
def gadgets(repository: SpyRepository, cacher: InMemoryCacher) -> ResourceService[Gadget]:
    return ResourceService(GADGET, repository, cacher=cacher)  # type: ignore[arg-type]
