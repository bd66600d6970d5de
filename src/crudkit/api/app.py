from __future__ import annotations

from fastapi import FastAPI

from crudkit.api.lifespan import lifespan
from crudkit.api.middleware import RequestTimerMiddleware
from crudkit.api.routes.health import router as health_router
from crudkit.core.ports.cache import Cacher
from crudkit.core.ports.repository import Repository


def create_app(
    repository: Repository,
    *,
    cacher: Cacher | None = None,
    title: str = "crudkit",
    slow_request_ms: int | None = None,
) -> FastAPI:
    """Create the FastAPI app that owns the shared ports.

    Resources are mounted afterwards with ``ApplicationBuilder``.
    """
    app = FastAPI(
        title=title,
        description="Generic CRUD resources over a pluggable repository.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.repository = repository
    app.state.cacher = cacher

    app.add_middleware(RequestTimerMiddleware, threshold_ms=slow_request_ms)
    app.include_router(health_router, include_in_schema=False)

    return app
