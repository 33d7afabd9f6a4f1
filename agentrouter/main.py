"""FastAPI entry-point exposing the agent router."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from loguru import logger

from agentrouter.api.routes import agents_router, messages_router
from agentrouter.config import Settings
from agentrouter.logging_config import configure_logging
from agentrouter.runtime import start_runtime


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application."""
        app.state.registry = await start_runtime(settings)
        logger.info("Agent router started ({})", settings.environment)
        yield
        await app.state.registry.dispose()
        logger.info("Agent router stopped")

    app = FastAPI(title="Agent Router", lifespan=lifespan)
    app.include_router(agents_router)
    app.include_router(messages_router)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
