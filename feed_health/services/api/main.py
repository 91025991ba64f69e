"""FastAPI service exposing liveness, version, and on-demand feed health evaluation."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from feed_health.core.config import get_settings
from feed_health.core.errors import (
    CallFailureError,
    ConfigurationError,
    DecodeError,
    FeedHealthError,
    NetworkResolutionError,
)
from feed_health.core.logging import configure_logging
from feed_health.core.types import FeedConfig
from feed_health.monitor.dispatcher import ReadCapability
from feed_health.monitor.feed_config import load_feed_config
from feed_health.monitor.pipeline import ListSink, evaluate
from feed_health.monitor.rpc import JsonRpcReadCapability

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[FeedHealthError], int] = {
    ConfigurationError: 500,
    NetworkResolutionError: 500,
    CallFailureError: 502,
    DecodeError: 502,
}


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Log startup metadata for operational visibility."""

    logger.info(
        "api_startup",
        extra={"service": "api", "env": settings.ENV, "version": settings.VERSION},
    )
    yield


app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)


def get_feed_config() -> FeedConfig:
    """Load the configured feed on every request so edits apply without a restart."""

    return load_feed_config(settings.FEED_CONFIG_PATH)


async def get_read_capability() -> AsyncIterator[ReadCapability]:
    """Provide a JSON-RPC capability scoped to one request."""

    async with JsonRpcReadCapability.from_settings(settings) as capability:
        yield capability


@app.exception_handler(FeedHealthError)
async def feed_health_error_handler(_: Request, exc: FeedHealthError) -> JSONResponse:
    status_code = _ERROR_STATUS.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "stage": exc.stage.value, "detail": str(exc)},
    )


@app.get("/health")
def health() -> dict[str, str]:
    """Return process liveness status."""

    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, str]:
    """Return application metadata from shared settings."""

    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "env": settings.ENV,
    }


@app.get("/feed/health")
async def evaluate_configured_feed(
    config: FeedConfig = Depends(get_feed_config),
    capability: ReadCapability = Depends(get_read_capability),
) -> dict[str, Any]:
    """Evaluate the configured feed once and return the report with its log lines."""

    sink = ListSink()
    report = await evaluate(config, capability, sink)
    payload = report.as_dict()
    payload["report"] = sink.lines
    return payload
