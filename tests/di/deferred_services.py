"""
Services whose annotations are only evaluated on demand.

ContainerMetrics is imported for type checkers only, so its annotation
cannot be evaluated at runtime.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from observability.metrics import ContainerMetrics


class AuditLog:
    pass


class AuditTrail:
    def __init__(self, log: AuditLog, metrics: Optional[ContainerMetrics] = None):
        self.log = log
        self.metrics = metrics


class StrictAuditTrail:
    def __init__(self, log: AuditLog, metrics: ContainerMetrics):
        self.log = log
        self.metrics = metrics
