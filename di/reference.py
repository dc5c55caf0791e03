"""
Armature - Service References

Immutable pointers to other services, used as definition arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class InvalidBehavior(Enum):
    """What a reference does when its target service is missing."""

    EXCEPTION = "exception"  # Raise ServiceNotFoundError
    NULL = "null"            # Resolve to None
    IGNORE = "ignore"        # None for arguments, skip the call for method calls


ServiceId = Union[str, type]


def type_name(cls: type) -> str:
    """Return the identifier under which autowiring looks up ``cls``."""
    return f"{cls.__module__}.{cls.__qualname__}"


def normalize_id(service_id: Any) -> str:
    """Accept a class wherever a service id is expected."""
    if isinstance(service_id, type):
        return type_name(service_id)
    return str(service_id)


@dataclass(frozen=True)
class Reference:
    """
    Reference to another service by identifier.

    Usage:
        builder.register("mailer", Mailer).set_arguments([Reference("transport")])
        builder.register("audit", Audit).add_argument(
            Reference("logger", InvalidBehavior.NULL)
        )
    """

    id: str
    invalid_behavior: InvalidBehavior = InvalidBehavior.EXCEPTION

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", normalize_id(self.id))

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class ServiceMethod:
    """Reference to a bound method of another service."""

    id: str
    method: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", normalize_id(self.id))

    def __str__(self) -> str:
        return f"{self.id}::{self.method}"
