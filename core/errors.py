"""
Armature - Error Hierarchy

Root of the errors raised by the container, the compiler passes and
the kernel. Every error carries a stable code and a severity, and marks
the active OpenTelemetry span as failed when it is created.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Where a container error surfaced: operation, component, service and trace ids."""

    operation: str
    component: str
    service_id: Optional[str] = None
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
    stack_trace: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "component": self.component,
            "service_id": self.service_id,
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "stack_trace": self.stack_trace,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_current_span(cls, operation: str, component: str, **kwargs: Any) -> "ErrorContext":
        """Build a context carrying the ids of the recording span, if any."""
        trace_id = span_id = None
        span = trace.get_current_span()
        if span.is_recording():
            span_context = span.get_span_context()
            if span_context.is_valid:
                trace_id = format(span_context.trace_id, "032x")
                span_id = format(span_context.span_id, "016x")

        return cls(
            operation=operation,
            component=component,
            trace_id=trace_id,
            span_id=span_id,
            stack_trace=traceback.format_exc(),
            **kwargs,
        )


class ArmatureError(Exception):
    """
    Base exception for all Armature errors.

    Subclasses set ``error_code`` and, where it differs from ERROR,
    ``default_severity``. ``suggestions`` are short hints for fixing the
    container configuration.
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "ARMATURE_ERROR"

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.severity = severity or self.default_severity
        self.cause = cause
        self.suggestions = suggestions or []

        self._record_to_span()

    def _record_to_span(self) -> None:
        span = trace.get_current_span()
        if not span.is_recording():
            return
        span.set_status(Status(StatusCode.ERROR, self.message))
        span.record_exception(self)
        span.set_attribute("error.code", self.error_code)
        span.set_attribute("error.severity", self.severity.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "suggestions": self.suggestions,
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        if self.context:
            text += f" (component: {self.context.component})"
        if self.cause:
            text += f" [caused by: {self.cause}]"
        return text


class ConfigurationError(ArmatureError):
    """The container or kernel was configured in a way that cannot work."""

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL


class KernelNotBootedError(ArmatureError):
    error_code = "KERNEL_NOT_BOOTED"

    def __init__(self, message: str = "Cannot get container before kernel is booted.", **kwargs: Any):
        super().__init__(message, **kwargs)
