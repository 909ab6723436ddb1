"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import rpsroom.runtime as runtime
from rpsroom.api.errors import handle_http_exception
from rpsroom.api.routers.rooms import router as rooms_router
from rpsroom.ws.routers import router as ws_router

logging.basicConfig(
    level=runtime.settings.rps_log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def startup() -> None:
    """Reset in-memory runtime state before handling traffic."""
    runtime.startup()
    logger.info("rpsroom starting (env=%s)", runtime.settings.rps_app_env)


@asynccontextmanager
async def lifespan(_: FastAPI):
    startup()
    yield
    await runtime.notifier.close_all()


app = FastAPI(title="rpsroom", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=runtime.settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HTTPException)
async def handle_http_exception_route(request: Request, exc: HTTPException) -> JSONResponse:
    """Adapter used by FastAPI exception handling."""
    return await handle_http_exception(request, exc)


app.include_router(rooms_router)
app.include_router(ws_router)


__all__ = ["app", "startup"]
