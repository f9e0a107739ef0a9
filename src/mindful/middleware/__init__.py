"""Middleware registration."""

from fastapi import FastAPI

from mindful.config import Settings
from mindful.middleware.error_handler import setup_error_handlers
from mindful.middleware.logging import setup_logging
from mindful.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure logging, register error handlers and add the request-id middleware."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
