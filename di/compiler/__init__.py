"""
Armature - Compiler Passes

Passes run once, in registration order, when ContainerBuilder.compile()
is called.
"""

from di.compiler.autowire import AutowirePass
from di.compiler.base import CompilerPass
from di.compiler.resolve_child_definitions import ResolveChildDefinitionsPass, resolve_definition
from di.compiler.resolve_references import ResolveReferencesPass
from di.compiler.tagged import (
    PriorityTaggedServicesPass,
    RegisterListenersPass,
    find_and_sort_tagged_services,
)

__all__ = [
    "AutowirePass",
    "CompilerPass",
    "PriorityTaggedServicesPass",
    "RegisterListenersPass",
    "ResolveChildDefinitionsPass",
    "ResolveReferencesPass",
    "find_and_sort_tagged_services",
    "resolve_definition",
]
