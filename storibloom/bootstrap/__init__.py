"""Composition root for wiring dependencies.

Centralizes infrastructure-aware wiring so request handlers can depend on
one WorkshopRuntime instead of constructing services themselves.
"""

from storibloom.bootstrap.logging import configure_structlog
from storibloom.bootstrap.workshop_runtime import (
    WorkshopRuntime,
    build_workshop_runtime,
    get_workshop_runtime,
    reset_workshop_runtime,
    set_workshop_runtime,
)

__all__: list[str] = [
    "WorkshopRuntime",
    "build_workshop_runtime",
    "configure_structlog",
    "get_workshop_runtime",
    "reset_workshop_runtime",
    "set_workshop_runtime",
]
