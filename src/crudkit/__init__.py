"""Generic CRUD resources for pydantic models over pluggable repository and cache ports."""

from crudkit.core.actions import (
    ADMIN_ACTIONS,
    ALL_ACTIONS,
    DELETE_ACTIONS,
    READ_ACTIONS,
    WRITE_ACTIONS,
    Action,
)
from crudkit.core.descriptor import ModelDescriptor, Relation
from crudkit.core.errors import (
    DecodeError,
    HookVetoError,
    NotFoundError,
    RepositoryError,
    ResourceError,
    UnsupportedActionError,
)
from crudkit.core.hooks import NO_HOOKS, Hooks
from crudkit.core.requests import Filter, FilterRequest, IDRequest, Operator, Page, PageRequest, Pagination
from crudkit.core.service import ResourceService

__all__ = [
    "ADMIN_ACTIONS",
    "ALL_ACTIONS",
    "DELETE_ACTIONS",
    "NO_HOOKS",
    "READ_ACTIONS",
    "WRITE_ACTIONS",
    "Action",
    "DecodeError",
    "Filter",
    "FilterRequest",
    "HookVetoError",
    "Hooks",
    "IDRequest",
    "ModelDescriptor",
    "NotFoundError",
    "Operator",
    "Page",
    "PageRequest",
    "Pagination",
    "Relation",
    "RepositoryError",
    "ResourceError",
    "ResourceService",
    "UnsupportedActionError",
]
