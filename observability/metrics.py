"""
Armature - OpenTelemetry Metrics

Counters and histograms describing container activity.

Key Metrics:
- armature_services_created_total: Services constructed, by id and sharing
- armature_resolution_errors_total: Failed get() calls, by error code
- armature_compile_duration_seconds: Time spent in compile()
- armature_compiler_pass_duration_seconds: Time spent per compiler pass

Usage:
    from observability.metrics import setup_metrics, get_container_metrics

    setup_metrics(MetricsConfig(enabled=True, console_export=True))
    get_container_metrics().record_service_created("mailer", shared=True)
"""
from __future__ import annotations

import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from opentelemetry import metrics
from opentelemetry.metrics import Meter
from opentelemetry.sdk.metrics import MeterProvider as SDKMeterProvider
from opentelemetry.sdk.metrics.export import ConsoleMetricExporter, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

_meter_provider: Optional[SDKMeterProvider] = None
_container_metrics: Optional["ContainerMetrics"] = None


@dataclass
class MetricsConfig:
    """Configuration for OpenTelemetry metrics."""

    service_name: str = "armature"
    service_version: str = "1.0.0"
    enabled: bool = field(
        default_factory=lambda: os.getenv("OTEL_METRICS_ENABLED", "false").lower() == "true"
    )
    console_export: bool = field(
        default_factory=lambda: os.getenv("OTEL_CONSOLE_EXPORT", "false").lower() == "true"
    )
    export_interval_millis: int = 60000


class ContainerMetrics:
    """Instruments recorded by the container and the kernel."""

    def __init__(self, meter: Meter):
        self.meter = meter

        self.services_created = meter.create_counter(
            name="armature_services_created_total",
            description="Total number of services constructed",
            unit="1",
        )

        self.resolution_errors = meter.create_counter(
            name="armature_resolution_errors_total",
            description="Total number of failed service resolutions",
            unit="1",
        )

        self.compile_duration = meter.create_histogram(
            name="armature_compile_duration_seconds",
            description="Duration of container compilation",
            unit="s",
        )

        self.pass_duration = meter.create_histogram(
            name="armature_compiler_pass_duration_seconds",
            description="Duration of a single compiler pass",
            unit="s",
        )

    def record_service_created(self, service_id: str, shared: bool) -> None:
        self.services_created.add(1, {"service_id": service_id, "shared": shared})

    def record_resolution_error(self, service_id: str, error_code: str) -> None:
        self.resolution_errors.add(1, {"service_id": service_id, "error_code": error_code})

    @contextmanager
    def time_compile(self, definition_count: int) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.compile_duration.record(
                time.perf_counter() - start,
                {"definitions": definition_count},
            )

    @contextmanager
    def time_pass(self, pass_name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.pass_duration.record(time.perf_counter() - start, {"pass": pass_name})


def setup_metrics(config: Optional[MetricsConfig] = None) -> metrics.MeterProvider:
    """Install an SDK meter provider when metrics are enabled."""
    global _meter_provider, _container_metrics

    if _meter_provider is not None:
        return _meter_provider

    config = config or MetricsConfig()
    if not config.enabled:
        return metrics.get_meter_provider()

    readers = []
    if config.console_export:
        readers.append(
            PeriodicExportingMetricReader(
                ConsoleMetricExporter(),
                export_interval_millis=config.export_interval_millis,
            )
        )

    _meter_provider = SDKMeterProvider(
        resource=Resource.create({
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
        }),
        metric_readers=readers,
    )
    metrics.set_meter_provider(_meter_provider)
    _container_metrics = None

    return _meter_provider


def get_container_metrics() -> ContainerMetrics:
    """Get the shared ContainerMetrics instance."""
    global _container_metrics
    if _container_metrics is None:
        _container_metrics = ContainerMetrics(metrics.get_meter("armature.di", "1.0.0"))
    return _container_metrics


def shutdown_metrics() -> None:
    """Flush and drop the meter provider."""
    global _meter_provider, _container_metrics

    if _meter_provider is not None:
        _meter_provider.shutdown()

    _meter_provider = None
    _container_metrics = None
