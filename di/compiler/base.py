"""
Armature - Compiler Pass Contract

A compiler pass runs once during ContainerBuilder.compile(), in the order it
was added, and may add, remove or rewrite definitions. It returns nothing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from di.builder import ContainerBuilder


class CompilerPass(ABC):
    """
    Registry transformation run before the container is frozen.

    Usage:
        class RegisterMailerTransportsPass(CompilerPass):
            def process(self, container: ContainerBuilder) -> None:
                mailer = container.get_definition("mailer")
                for service_id in container.find_tagged_service_ids("mailer.transport"):
                    mailer.add_method_call("add_transport", [Reference(service_id)])
    """

    @abstractmethod
    def process(self, container: "ContainerBuilder") -> None:
        """Inspect and rewrite the builder's definitions."""

    @property
    def name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"<{self.name}>"
