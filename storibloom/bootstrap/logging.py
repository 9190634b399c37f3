"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from storibloom.infrastructure.observability import (
    configure_structlog as _configure_structlog,
)

ENVIRONMENT_ENV = "STORIBLOOM_ENV"
DEFAULT_ENVIRONMENT = "production"


def configure_structlog(environment: str | None = None) -> None:
    """Configure structlog for the given environment.

    Falls back to the STORIBLOOM_ENV variable, then to production.
    """
    _configure_structlog(
        environment=environment or os.getenv(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)
    )


__all__ = ["configure_structlog"]
