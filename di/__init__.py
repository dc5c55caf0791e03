"""
Armature - Dependency Injection Module

A compiled service container:
- Definitions describe how each service is built (class or factory,
  arguments, setter calls, tags, sharing)
- ContainerBuilder collects definitions, runs compiler passes and freezes
- Services are created on first get() and cached when shared
- %parameters% are substituted into arguments at resolution time
- Autowiring fills constructor arguments from type hints

Usage:
    from di import ContainerBuilder, Reference
    from di.compiler import AutowirePass

    builder = ContainerBuilder({"db.dsn": "sqlite://"})
    builder.register("db", Database).set_arguments(["%db.dsn%"])
    builder.register("users", UserRepository).set_arguments([Reference("db")])
    builder.add_compiler_pass(AutowirePass())
    builder.compile()

    users = builder.get("users")
"""

from di.builder import ContainerBuilder
from di.container import SERVICE_CONTAINER_ID, Container
from di.definition import Definition, import_string
from di.exceptions import (
    AbstractServiceError,
    AliasCircularReferenceError,
    AutowiringError,
    CircularDependencyError,
    ClassNotFoundError,
    ContainerError,
    FrozenContainerError,
    InvalidDefinitionError,
    InvalidReferenceError,
    ParameterCircularReferenceError,
    ParameterNotFoundError,
    ParameterResolutionError,
    ServiceNotFoundError,
    SyntheticServiceError,
)
from di.proxy import LazyServiceProxy, get_wrapped_instance, is_initialized
from di.reference import InvalidBehavior, Reference, ServiceMethod, normalize_id, type_name

__all__ = [
    # Containers
    "Container",
    "ContainerBuilder",
    "SERVICE_CONTAINER_ID",
    # Definitions and references
    "Definition",
    "Reference",
    "ServiceMethod",
    "InvalidBehavior",
    "import_string",
    "normalize_id",
    "type_name",
    # Lazy services
    "LazyServiceProxy",
    "is_initialized",
    "get_wrapped_instance",
    # Exceptions
    "ContainerError",
    "ServiceNotFoundError",
    "ParameterNotFoundError",
    "ParameterResolutionError",
    "ParameterCircularReferenceError",
    "CircularDependencyError",
    "AliasCircularReferenceError",
    "FrozenContainerError",
    "SyntheticServiceError",
    "AbstractServiceError",
    "AutowiringError",
    "InvalidReferenceError",
    "InvalidDefinitionError",
    "ClassNotFoundError",
]
