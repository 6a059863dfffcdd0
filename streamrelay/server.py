"""Main FastAPI server for the chat-completion stream relay."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import Callable, Awaitable

from fastapi import FastAPI, WebSocket
from fastapi.responses import ORJSONResponse

from streamrelay.state import RuntimeDeps
from streamrelay.config.websocket import WS_ENDPOINT_PATH
from streamrelay.runtime.logging import configure_logging
from streamrelay.runtime.dependencies import build_runtime_deps
from streamrelay.handlers.websocket.manager import handle_websocket_connection

logger = logging.getLogger(__name__)

DepsBuilder = Callable[[], Awaitable[RuntimeDeps]]


def create_app(deps_builder: DepsBuilder = build_runtime_deps) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        runtime_deps = await deps_builder()
        app.state.runtime_deps = runtime_deps
        logger.info("runtime: ready")
        try:
            yield
        finally:
            deps = getattr(app.state, "runtime_deps", None)
            if deps is not None:
                await deps.shutdown()

    app = FastAPI(default_response_class=ORJSONResponse, lifespan=_lifespan)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.websocket(WS_ENDPOINT_PATH)
    async def websocket_endpoint(websocket: WebSocket) -> None:
        runtime_deps = getattr(app.state, "runtime_deps", None)
        if runtime_deps is None:
            raise RuntimeError("Runtime dependencies are not initialized")
        await handle_websocket_connection(websocket, runtime_deps)

    return app


configure_logging()

app = create_app()

__all__ = ["app", "create_app"]
