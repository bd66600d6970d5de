from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    cacher = getattr(app.state, "cacher", None)
    if cacher is not None:
        await cacher.close()
    repository = getattr(app.state, "repository", None)
    if repository is not None:
        await repository.dispose()
    logger.info("ports released")
