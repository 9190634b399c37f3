"""Observability: structlog configuration and correlation ids.

Usage:
    from storibloom.infrastructure.observability import (
        configure_structlog,
        correlation_scope,
        generate_correlation_id,
    )

    configure_structlog(environment="production")

    with correlation_scope(generate_correlation_id("req-")):
        engine.touch(room_id)
"""

from storibloom.infrastructure.observability.correlation import (
    correlation_id_processor,
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from storibloom.infrastructure.observability.logging import (
    configure_structlog,
    get_logger_for_service,
)

__all__: list[str] = [
    "configure_structlog",
    "correlation_id_processor",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "get_logger_for_service",
    "set_correlation_id",
]
