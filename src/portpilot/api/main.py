"""FastAPI application entry point for the PortPilot API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portpilot.api.routes import (
    admin,
    dashboard,
    health,
    portfolio,
    projects,
    sync,
    themes,
    users,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize resources on startup and clean up on shutdown."""
    from portpilot.data.db import init_db

    init_db()
    yield


app = FastAPI(
    title="PortPilot API",
    description="API for turning GitHub repositories into a hosted developer portfolio",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(sync.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(portfolio.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(themes.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "portpilot.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
