"""Tests for the dict-backed repository."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from pydantic import BaseModel

from crudkit.core.descriptor import ModelDescriptor, Relation
from crudkit.core.errors import NotFoundError, RepositoryError
from crudkit.core.requests import Filter, FilterRequest, Operator, PageRequest
from crudkit.db.memory import InMemoryRepository, matches, sort_rows
from tests.support import GADGET, OWNER, Gadget, Owner


class Book(BaseModel):
    id: int | None = None
    title: str
    author_id: int | None = None


class Author(BaseModel):
    id: int | None = None
    name: str
    books: list[Book] | None = None


BOOK = ModelDescriptor(Book)
AUTHOR = ModelDescriptor(Author, relations={"books": Relation(BOOK, "author_id", many=True)})


@pytest.fixture
def repo() -> InMemoryRepository:
    repository = InMemoryRepository()
    for name, size in [("alpha", 3), ("beta", 1), ("gamma", 2), ("delta", 5)]:
        asyncio.run(repository.create(GADGET, Gadget(name=name, size=size)))
    return repository


def _names(repo: InMemoryRepository, *filters: Filter, order: list[str] | None = None) -> list[str]:
    request = FilterRequest(filters=list(filters), order=order or [])
    return [g.name for g in asyncio.run(repo.list(GADGET, request))]


class TestFilters:
    @pytest.mark.parametrize(
        ("operator", "value", "expected"),
        [
            (Operator.EQ, 3, ["alpha"]),
            (Operator.NE, 3, ["beta", "gamma", "delta"]),
            (Operator.GT, 2, ["alpha", "delta"]),
            (Operator.GE, 2, ["alpha", "gamma", "delta"]),
            (Operator.LT, 2, ["beta"]),
            (Operator.LE, 2, ["beta", "gamma"]),
            (Operator.IN, [1, 5], ["beta", "delta"]),
            (Operator.NOT_IN, [1, 5], ["alpha", "gamma"]),
        ],
    )
    def test_comparison_operators(
        self, repo: InMemoryRepository, operator: Operator, value: Any, expected: list[str]
    ) -> None:
        assert _names(repo, Filter(field="size", operator=operator, value=value)) == expected

    def test_like(self, repo: InMemoryRepository) -> None:
        assert _names(repo, Filter(field="name", operator=Operator.LIKE, value="%ta")) == ["beta", "delta"]
        assert _names(repo, Filter(field="name", operator=Operator.LIKE, value="_amma")) == ["gamma"]
        assert _names(repo, Filter(field="name", operator=Operator.LIKE, value="a.%")) == []

    def test_null_checks(self) -> None:
        rows = [{"id": 1, "owner_id": None}, {"id": 2, "owner_id": 7}]
        assert [r["id"] for r in rows if matches(r, [Filter(field="owner_id", operator=Operator.IS_NULL)])] == [1]
        assert [r["id"] for r in rows if matches(r, [Filter(field="owner_id", operator=Operator.NOT_NULL)])] == [2]

    def test_filters_are_a_conjunction(self, repo: InMemoryRepository) -> None:
        names = _names(
            repo,
            Filter(field="size", operator=Operator.GE, value=2),
            Filter(field="name", operator=Operator.LIKE, value="%a"),
        )
        assert names == ["alpha", "gamma", "delta"]
        assert _names(repo, Filter(field="size", value=3), Filter(field="name", value="beta")) == []

    def test_incomparable_values_raise_repository_error(self, repo: InMemoryRepository) -> None:
        with pytest.raises(RepositoryError):
            _names(repo, Filter(field="name", operator=Operator.GT, value=1))


class TestOrdering:
    def test_multi_key_order(self, repo: InMemoryRepository) -> None:
        asyncio.run(repo.create(GADGET, Gadget(name="alpha", size=9)))
        assert _names(repo, order=["name", "-size"]) == ["alpha", "alpha", "beta", "delta", "gamma"]

    def test_none_sorts_last_ascending(self) -> None:
        rows = [{"id": 1, "size": None}, {"id": 2, "size": 2}, {"id": 3, "size": 1}]
        assert [r["id"] for r in sort_rows(rows, ["size"], "id")] == [3, 2, 1]
        assert [r["id"] for r in sort_rows(rows, ["-size"], "id")] == [1, 2, 3]


class TestPaging:
    def test_window_and_totals(self, repo: InMemoryRepository) -> None:
        page = asyncio.run(repo.page(GADGET, PageRequest(page=2, page_size=3)))
        assert [g.name for g in page.items] == ["delta"]
        assert page.pagination.total == 4
        assert page.pagination.page_count == 2

    def test_page_past_end_is_empty(self, repo: InMemoryRepository) -> None:
        page = asyncio.run(repo.page(GADGET, PageRequest(page=10, page_size=3)))
        assert page.items == []
        assert page.pagination.total == 4


class TestMutations:
    def test_explicit_primary_key_advances_sequence(self) -> None:
        repo = InMemoryRepository()
        asyncio.run(repo.create(GADGET, Gadget(id=10, name="ten")))
        assert asyncio.run(repo.create(GADGET, Gadget(name="next"))).id == 11

    def test_duplicate_primary_key(self, repo: InMemoryRepository) -> None:
        with pytest.raises(RepositoryError, match="Duplicate"):
            asyncio.run(repo.create(GADGET, Gadget(id=1, name="again")))

    def test_relations_are_not_persisted(self) -> None:
        repo = InMemoryRepository()
        asyncio.run(repo.create(GADGET, Gadget(name="a", owner=Owner(id=5, name="o"))))
        assert "owner" not in repo.tables["Gadget"][1]

    def test_update_replaces_row(self, repo: InMemoryRepository) -> None:
        updated = asyncio.run(repo.update(GADGET, 1, Gadget(name="omega")))
        assert updated == Gadget(id=1, name="omega", size=0)

    def test_update_fields_rejects_unknown_columns(self, repo: InMemoryRepository) -> None:
        with pytest.raises(RepositoryError):
            asyncio.run(repo.update_fields(GADGET, 1, {"colour": "red"}))

    def test_soft_delete_lifecycle(self, repo: InMemoryRepository) -> None:
        asyncio.run(repo.remove(GADGET, 1))

        with pytest.raises(NotFoundError):
            asyncio.run(repo.get(GADGET, 1))
        with pytest.raises(NotFoundError):
            asyncio.run(repo.update(GADGET, 1, Gadget(name="x")))
        assert "alpha" not in _names(repo)

        asyncio.run(repo.restore(GADGET, 1))
        assert asyncio.run(repo.get(GADGET, 1)).name == "alpha"

    def test_destroy_reaches_soft_deleted_rows(self, repo: InMemoryRepository) -> None:
        asyncio.run(repo.remove(GADGET, 2))
        asyncio.run(repo.destroy(GADGET, 2))

        with pytest.raises(NotFoundError):
            asyncio.run(repo.restore(GADGET, 2))
        with pytest.raises(NotFoundError):
            asyncio.run(repo.destroy(GADGET, 2))


class TestPreloads:
    def test_belongs_to(self) -> None:
        repo = InMemoryRepository()
        asyncio.run(repo.create(OWNER, Owner(name="ada")))
        asyncio.run(repo.create(GADGET, Gadget(name="a", owner_id=1)))
        asyncio.run(repo.create(GADGET, Gadget(name="b", owner_id=99)))

        assert asyncio.run(repo.get(GADGET, 1, ["owner"])).owner == Owner(id=1, name="ada")
        assert asyncio.run(repo.get(GADGET, 2, ["owner"])).owner is None
        assert asyncio.run(repo.get(GADGET, 1)).owner is None

    def test_has_many_skips_soft_deleted_children(self) -> None:
        repo = InMemoryRepository()
        asyncio.run(repo.create(AUTHOR, Author(name="le guin")))
        for title in ("dispossessed", "lathe", "earthsea"):
            asyncio.run(repo.create(BOOK, Book(title=title, author_id=1)))
        asyncio.run(repo.remove(BOOK, 2))

        author = asyncio.run(repo.get(AUTHOR, 1, ["books"]))

        assert author.books is not None
        assert [b.title for b in author.books] == ["dispossessed", "earthsea"]

    def test_unknown_relation(self, repo: InMemoryRepository) -> None:
        with pytest.raises(RepositoryError):
            asyncio.run(repo.get(GADGET, 1, ["maker"]))
