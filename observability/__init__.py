"""
Armature - Observability Package

Structured logging, tracing and metrics for the container.

Components:
- logging: structlog with trace context propagation
- tracing: OpenTelemetry spans around compilation and service creation
- metrics: OpenTelemetry counters and histograms for the container

Usage:
    from observability import setup_observability, get_logger

    setup_observability()
    logger = get_logger(__name__)
"""
from typing import Optional

from .logging import (
    LogContext,
    LoggingConfig,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .metrics import (
    ContainerMetrics,
    MetricsConfig,
    get_container_metrics,
    setup_metrics,
    shutdown_metrics,
)
from .tracing import (
    TracingConfig,
    create_span,
    get_tracer,
    setup_tracing,
    shutdown_tracing,
    span_decorator,
)


def setup_observability(
    logging_config: Optional[LoggingConfig] = None,
    tracing_config: Optional[TracingConfig] = None,
    metrics_config: Optional[MetricsConfig] = None,
) -> None:
    """
    Initialize logging, tracing and metrics.

    Each part reads its own environment variables when no config is given.
    Tracing and metrics stay no-ops unless enabled.
    """
    setup_logging(logging_config)
    setup_tracing(tracing_config)
    setup_metrics(metrics_config)


def shutdown_observability() -> None:
    """Flush and shut down every observability component."""
    shutdown_tracing()
    shutdown_metrics()
    shutdown_logging()


__all__ = [
    # Setup
    "setup_observability",
    "shutdown_observability",
    # Logging
    "LoggingConfig",
    "LogContext",
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Tracing
    "TracingConfig",
    "setup_tracing",
    "shutdown_tracing",
    "get_tracer",
    "create_span",
    "span_decorator",
    # Metrics
    "MetricsConfig",
    "ContainerMetrics",
    "setup_metrics",
    "shutdown_metrics",
    "get_container_metrics",
]
