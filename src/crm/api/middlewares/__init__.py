"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.crm.core.config import Settings

from .logging_context import logging_context_middleware

__all__ = ["logging_context_middleware", "setup_middlewares"]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure application middlewares.

    Middleware added last runs first, so the correlation id is assigned before
    the logging context reads it.
    """
    app.middleware("http")(logging_context_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Tenant-Slug", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(CorrelationIdMiddleware)
