"""Loguru configuration shared by the API and the services."""

from __future__ import annotations

import sys

from fastapi import Request
from loguru import logger

from app.config.settings import settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level: str = settings.log_level) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, backtrace=False)


configure_logging()

app_logger = logger.bind(component="app")


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def log_request_start(request: Request) -> None:
    app_logger.info(f"--> {request.method} {request.url.path} | client={_client_host(request)}")


def log_request_end(request: Request, status_code: int, process_time: float) -> None:
    message = f"<-- {request.method} {request.url.path} | status={status_code} | {process_time:.3f}s"
    if status_code >= 500:
        app_logger.error(message)
    elif status_code >= 400:
        app_logger.warning(message)
    else:
        app_logger.info(message)


def log_request_error(request: Request, error: Exception, process_time: float) -> None:
    app_logger.exception(
        f"<-- {request.method} {request.url.path} | error={error!r} | {process_time:.3f}s"
    )
