import logging
from enum import Enum
from typing import Callable, Optional
from findash.events.bus import Event, EventBus
from dataclasses import dataclass, field

class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)

def describe_error(error: Exception) -> str:
    """Return the user-facing message for *error*."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    text = str(error)
    return text or "An unexpected error occurred"

class ErrorHandler:
    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]):
        self._ui_callback = callback

    def handle(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.ERROR, context: dict = None) -> str:
        message = describe_error(error)

        # Log the error
        log_method = getattr(self._logger, severity.value, self._logger.error)
        log_method(f"{error.__class__.__name__}: {message}", extra={"context": context or {}})

        # Publish event
        self._events.publish(ErrorOccurredEvent(
            error=error,
            severity=severity,
            context=context or {}
        ))

        # Notify UI
        if self._ui_callback and severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL):
            self._ui_callback(message, severity)
        return message
