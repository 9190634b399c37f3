"""Base service logging mixin.

Gives workshop services one structured logging convention: every logger is
bound with the service class name and a component label, and every
operation logger also carries the current correlation id.

Usage:
    class MyService(LoggingMixin):
        def __init__(self, rooms: RoomRepositoryProtocol) -> None:
            self._rooms = rooms
            self._init_logger()

        async def do_something(self, room_id: str) -> None:
            log = self._log_operation("do_something", room_id=room_id)
            log.info("operation_started")
"""

import structlog

from storibloom.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Mixin providing structured logging for services.

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "workshop") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__ after setting up dependencies.
        """
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create an operation-scoped logger with the correlation id.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind.
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
