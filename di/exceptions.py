"""
Armature - Container Exceptions

Every failure the container can report. Nothing here is recovered
internally; each error terminates the get()/compile() call that raised it.
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence

from core.errors import ArmatureError, ConfigurationError, ErrorSeverity


class ContainerError(ArmatureError):
    """Base class for all container errors."""

    error_code = "CONTAINER_ERROR"


class ServiceNotFoundError(ContainerError):
    """A requested service has no registration."""

    error_code = "SERVICE_NOT_FOUND"

    def __init__(
        self,
        service_id: str,
        source_id: Optional[str] = None,
        message: Optional[str] = None,
        **kwargs: Any,
    ):
        if message is None:
            if source_id:
                message = (
                    f'Service "{source_id}" has a dependency on '
                    f'non-existent service "{service_id}".'
                )
            else:
                message = f'Service "{service_id}" not found in container.'
        super().__init__(message, **kwargs)
        self.service_id = service_id
        self.source_id = source_id


class ParameterNotFoundError(ContainerError):
    """A requested parameter has no value."""

    error_code = "PARAMETER_NOT_FOUND"

    def __init__(self, name: str, source: Optional[str] = None, **kwargs: Any):
        message = f'Parameter "{name}" not found in container.'
        if source:
            message = f'Parameter "{source}" references non-existent parameter "{name}".'
        super().__init__(message, **kwargs)
        self.name = name
        self.source = source


class CircularDependencyError(ContainerError):
    """A service transitively depends on itself during construction."""

    error_code = "CIRCULAR_DEPENDENCY"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, path: Sequence[str], **kwargs: Any):
        self.path: List[str] = list(path)
        super().__init__(
            f"Circular dependency detected: {' -> '.join(self.path)}",
            suggestions=["Break the cycle with setter injection or a lazy service."],
            **kwargs,
        )

    @property
    def cycle(self) -> List[str]:
        """Shortest slice of the path that starts and ends on the same id."""
        last = self.path[-1]
        return self.path[self.path.index(last):]


class AliasCircularReferenceError(ContainerError):
    """Following an alias chain came back to an alias already visited."""

    error_code = "ALIAS_CIRCULAR_REFERENCE"

    def __init__(self, chain: Sequence[str], **kwargs: Any):
        self.chain: List[str] = list(chain)
        super().__init__(
            f"Circular reference detected for alias: {' -> '.join(self.chain)}",
            **kwargs,
        )


class ParameterCircularReferenceError(ContainerError):
    """A parameter value refers back to itself."""

    error_code = "PARAMETER_CIRCULAR_REFERENCE"

    def __init__(self, chain: Sequence[str], **kwargs: Any):
        self.chain: List[str] = list(chain)
        super().__init__(
            f"Circular reference detected for parameter: {' -> '.join(self.chain)}",
            **kwargs,
        )


class ParameterResolutionError(ContainerError):
    """A placeholder cannot be substituted into a string."""

    error_code = "PARAMETER_RESOLUTION_ERROR"


class FrozenContainerError(ContainerError):
    """The registry was mutated after compile()."""

    error_code = "FROZEN_CONTAINER"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(self, message: str = "Cannot modify a frozen container.", **kwargs: Any):
        super().__init__(message, **kwargs)


class SyntheticServiceError(ContainerError):
    """A synthetic service was requested before being set()."""

    error_code = "SYNTHETIC_SERVICE"

    def __init__(self, service_id: str, **kwargs: Any):
        super().__init__(
            f'Service "{service_id}" is synthetic and must be set at runtime.',
            suggestions=[f'Call container.set("{service_id}", instance) before using it.'],
            **kwargs,
        )
        self.service_id = service_id


class AbstractServiceError(ContainerError):
    """An abstract (template) definition was requested."""

    error_code = "ABSTRACT_SERVICE"

    def __init__(self, service_id: str, **kwargs: Any):
        super().__init__(
            f'Service "{service_id}" is abstract and cannot be instantiated.',
            **kwargs,
        )
        self.service_id = service_id


class AutowiringError(ContainerError, ConfigurationError):
    """A constructor parameter could not be matched to a service or value."""

    error_code = "AUTOWIRING_ERROR"

    def __init__(
        self,
        message: str,
        consumer: Optional[str] = None,
        parameter: Optional[str] = None,
        dependency: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.consumer = consumer
        self.parameter = parameter
        self.dependency = dependency


class InvalidReferenceError(ContainerError):
    """A definition references a service that does not exist."""

    error_code = "INVALID_REFERENCE"

    def __init__(self, service_id: str, referenced_id: str, **kwargs: Any):
        super().__init__(
            f'Service "{service_id}" has a dependency on non-existent service "{referenced_id}".',
            **kwargs,
        )
        self.service_id = service_id
        self.referenced_id = referenced_id


class InvalidDefinitionError(ContainerError):
    """A definition is inconsistent and cannot produce a service."""

    error_code = "INVALID_DEFINITION"


class ClassNotFoundError(ContainerError):
    """A dotted class path could not be imported."""

    error_code = "CLASS_NOT_FOUND"

    def __init__(self, path: str, **kwargs: Any):
        super().__init__(f'Class "{path}" could not be imported.', **kwargs)
        self.path = path
