from __future__ import annotations

from fastapi import Request

from crudkit.core.ports.repository import Repository


def get_repository(request: Request) -> Repository:
    """Return the repository the app was created with."""
    repository: Repository = request.app.state.repository
    return repository
