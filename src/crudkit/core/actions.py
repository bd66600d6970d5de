"""Symbolic CRUD actions and the named groups used for bulk route registration."""

from __future__ import annotations

from enum import Enum

from crudkit.core.errors import UnsupportedActionError


class Action(str, Enum):
    GET_BY_ID = "GetByID"
    FIRST = "First"
    LIST = "List"
    PAGE = "Page"
    STORE = "Store"
    UPDATE = "Update"
    UPDATE_FIELDS = "UpdateFields"
    REMOVE = "Remove"
    RESTORE = "Restore"
    DESTROY = "Destroy"

    @classmethod
    def parse(cls, value: Action | str) -> Action:
        """Return the Action for ``value``, raising ``UnsupportedActionError`` for unknown tags."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as exc:
            raise UnsupportedActionError(f"Unsupported action: {value!r}") from exc


READ_ACTIONS: tuple[Action, ...] = (Action.GET_BY_ID, Action.FIRST, Action.LIST, Action.PAGE)
WRITE_ACTIONS: tuple[Action, ...] = (Action.STORE, Action.UPDATE, Action.UPDATE_FIELDS)
DELETE_ACTIONS: tuple[Action, ...] = (Action.REMOVE, Action.RESTORE, Action.DESTROY)
ADMIN_ACTIONS: tuple[Action, ...] = (Action.RESTORE, Action.DESTROY)
ALL_ACTIONS: tuple[Action, ...] = tuple(Action)
