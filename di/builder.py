"""
Armature - Container Builder

Build-time container: a registry of definitions, aliases and compiler
passes that is frozen by compile(), and that builds services from their
definitions when they are first requested.

Usage:
    builder = ContainerBuilder()
    builder.set_parameter("mailer.sender", "noreply@example.com")

    builder.register("mailer.transport", SmtpTransport).set_arguments(["%mailer.host%"])
    builder.register("mailer", Mailer).set_autowired(True)
    builder.set_alias(Mailer, "mailer")

    builder.add_compiler_pass(AutowirePass())
    builder.compile()

    mailer = builder.get("mailer")
"""

from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Dict, List, Optional, Tuple, Union

from di.compiler.base import CompilerPass
from di.compiler.resolve_child_definitions import resolve_definition
from di.container import Container
from di.definition import Definition, import_string
from di.exceptions import (
    AbstractServiceError,
    AliasCircularReferenceError,
    AutowiringError,
    ClassNotFoundError,
    FrozenContainerError,
    InvalidDefinitionError,
    ServiceNotFoundError,
    SyntheticServiceError,
)
from di.proxy import LazyServiceProxy
from di.reference import InvalidBehavior, Reference, ServiceId, normalize_id, type_name
from observability.logging import get_logger
from observability.metrics import get_container_metrics
from observability.tracing import get_tracer

logger = get_logger(__name__)
tracer = get_tracer(__name__)

# Types that can never be autowired from a service
BUILTIN_TYPES = frozenset({
    int, str, float, bool, bytes, bytearray, complex,
    list, dict, tuple, set, frozenset, object, type,
})


class ContainerBuilder(Container):
    """
    Mutable service registry that compiles into a frozen container.

    Registration methods raise FrozenContainerError once compile() has run;
    get(), set() and the parameter methods keep working.
    """

    def __init__(self, parameters: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(parameters)
        self._definitions: Dict[str, Definition] = {}
        self._aliases: Dict[str, str] = {}
        self._compiler_passes: List[CompilerPass] = []
        # Passes that already ran; a compile() retried after a failure resumes here
        self._passes_done = 0
        self._compiled = False

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def register(self, service_id: ServiceId, class_: Union[type, str, None] = None) -> Definition:
        """
        Register a new definition and return it for fluent configuration.

        The class defaults to the id itself (the class when the id is one).
        """
        self._ensure_not_frozen()

        definition = Definition(service_id if isinstance(service_id, type) else normalize_id(service_id))
        if class_ is not None:
            definition.set_class(class_)
        return self.set_definition(service_id, definition)

    def set_definition(self, service_id: ServiceId, definition: Definition) -> Definition:
        self._ensure_not_frozen()

        service_id = normalize_id(service_id)
        self._aliases.pop(service_id, None)
        self._definitions[service_id] = definition
        return definition

    def add_definitions(self, definitions: Dict[str, Definition]) -> None:
        for service_id, definition in definitions.items():
            self.set_definition(service_id, definition)

    def get_definition(self, service_id: ServiceId) -> Definition:
        service_id = normalize_id(service_id)
        try:
            return self._definitions[service_id]
        except KeyError:
            raise ServiceNotFoundError(service_id) from None

    def find_definition(self, service_id: ServiceId) -> Definition:
        """Like get_definition(), but follows aliases first."""
        return self.get_definition(self._resolve_id(normalize_id(service_id)))

    def has_definition(self, service_id: ServiceId) -> bool:
        return normalize_id(service_id) in self._definitions

    def remove_definition(self, service_id: ServiceId) -> None:
        self._ensure_not_frozen()
        self._definitions.pop(normalize_id(service_id), None)

    def get_definitions(self) -> Dict[str, Definition]:
        return dict(self._definitions)

    # ------------------------------------------------------------------
    # Aliases
    # ------------------------------------------------------------------

    def set_alias(self, alias: ServiceId, service_id: ServiceId) -> None:
        self._ensure_not_frozen()

        alias = normalize_id(alias)
        service_id = normalize_id(service_id)
        if alias == service_id:
            raise AliasCircularReferenceError([alias, service_id])

        self._definitions.pop(alias, None)
        self._aliases[alias] = service_id

    def get_alias(self, alias: ServiceId) -> str:
        alias = normalize_id(alias)
        try:
            return self._aliases[alias]
        except KeyError:
            raise ServiceNotFoundError(alias) from None

    def has_alias(self, alias: ServiceId) -> bool:
        return normalize_id(alias) in self._aliases

    def remove_alias(self, alias: ServiceId) -> None:
        self._ensure_not_frozen()
        self._aliases.pop(normalize_id(alias), None)

    @property
    def aliases(self) -> Dict[str, str]:
        return dict(self._aliases)

    def _resolve_id(self, service_id: str) -> str:
        chain = [service_id]
        while service_id in self._aliases:
            service_id = self._aliases[service_id]
            if service_id in chain:
                raise AliasCircularReferenceError([*chain, service_id])
            chain.append(service_id)
        return service_id

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def add_compiler_pass(self, compiler_pass: CompilerPass) -> "ContainerBuilder":
        self._ensure_not_frozen()

        if not callable(getattr(compiler_pass, "process", None)):
            raise TypeError(f"Compiler pass {compiler_pass!r} has no process() method.")
        self._compiler_passes.append(compiler_pass)
        return self

    def get_compiler_passes(self) -> List[CompilerPass]:
        return list(self._compiler_passes)

    def compile(self) -> None:
        """
        Run every compiler pass once, in order, then freeze the registry.

        Calling compile() again is a no-op. If a pass raises, the error
        propagates and the builder stays unfrozen; the next compile() starts
        from the failed pass, so passes that already succeeded never run twice.
        """
        if self._compiled:
            return

        metrics = get_container_metrics()
        with tracer.start_as_current_span("container.compile") as span, \
                metrics.time_compile(len(self._definitions)):
            span.set_attribute("container.compiler_passes", len(self._compiler_passes))

            for compiler_pass in self._compiler_passes[self._passes_done:]:
                pass_name = type(compiler_pass).__name__
                logger.info("Running compiler pass", compiler_pass=pass_name)
                with tracer.start_as_current_span(f"container.compiler_pass.{pass_name}"), \
                        metrics.time_pass(pass_name):
                    compiler_pass.process(self)
                self._passes_done += 1

            self._compiled = True
            span.set_attribute("container.definitions", len(self._definitions))
            span.set_attribute("container.aliases", len(self._aliases))

        logger.info(
            "Container compiled",
            definitions=len(self._definitions),
            aliases=len(self._aliases),
            compiler_passes=len(self._compiler_passes),
        )

    def is_compiled(self) -> bool:
        return self._compiled

    def _ensure_not_frozen(self) -> None:
        if self._compiled:
            raise FrozenContainerError()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has(self, service_id: ServiceId) -> bool:
        service_id = normalize_id(service_id)
        return (
            service_id in self._services
            or service_id in self._definitions
            or service_id in self._aliases
        )

    def get_service_ids(self) -> List[str]:
        return list(dict.fromkeys([*self._definitions, *self._aliases, *self._services]))

    def find_tagged_service_ids(self, tag: str) -> Dict[str, List[Dict[str, Any]]]:
        """Map of service id to the attribute sets of each ``tag`` it carries."""
        return {
            service_id: definition.get_tag(tag)
            for service_id, definition in self._definitions.items()
            if definition.has_tag(tag)
        }

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    def _is_shared(self, service_id: str) -> bool:
        definition = self._definitions.get(service_id)
        if definition is None:
            return True
        if definition.parent is not None and "shared" not in definition.changes:
            return resolve_definition(self, service_id, definition).shared
        return definition.shared

    def create_service(self, service_id: str) -> Any:
        if service_id not in self._definitions:
            raise ServiceNotFoundError(service_id)

        definition = self._definitions[service_id]

        if definition.synthetic:
            raise SyntheticServiceError(service_id)
        if definition.abstract:
            raise AbstractServiceError(service_id)

        definition = resolve_definition(self, service_id, definition)

        if definition.lazy:
            return LazyServiceProxy(
                lambda: self._initialize_lazy(service_id, definition),
                label=service_id,
                lock=self._lock,
            )

        return self._build_service(service_id, definition)

    def _initialize_lazy(self, service_id: str, definition: Definition) -> Any:
        with self._loading_scope(service_id):
            return self._build_service(service_id, definition)

    def _build_service(self, service_id: str, definition: Definition) -> Any:
        with tracer.start_as_current_span("container.create_service") as span:
            span.set_attribute("service.id", service_id)

            if definition.factory is not None:
                service = self._call_factory(service_id, definition)
            else:
                cls = definition.resolve_class()
                if cls is None:
                    raise InvalidDefinitionError(
                        f'Cannot instantiate service "{service_id}" without a class or a factory.'
                    )
                arguments = definition.arguments
                if definition.autowired and not arguments:
                    arguments = self.autowire(cls)
                service = cls(*self.resolve_arguments(arguments))

            for method, arguments in definition.method_calls:
                if self._has_ignored_reference(arguments):
                    logger.debug("Skipping method call, ignored reference is missing",
                                 service_id=service_id, method=method)
                    continue
                call = getattr(service, method, None)
                if not callable(call):
                    raise InvalidDefinitionError(
                        f'Service "{service_id}" has no method "{method}" to call.'
                    )
                call(*self.resolve_arguments(arguments))

        get_container_metrics().record_service_created(service_id, definition.shared)
        logger.debug(
            "Service created",
            service_id=service_id,
            class_name=type(service).__qualname__,
            shared=definition.shared,
        )
        return service

    def _call_factory(self, service_id: str, definition: Definition) -> Any:
        factory = definition.factory
        arguments = self.resolve_arguments(definition.arguments)

        if isinstance(factory, tuple):
            target, method = factory
            if isinstance(target, Reference):
                target = self.get(target.id, target.invalid_behavior)
            elif isinstance(target, str):
                target = self.get(target) if self.has(target) else import_string(target)

            factory = getattr(target, method, None)
            if not callable(factory):
                raise InvalidDefinitionError(
                    f'Factory of service "{service_id}" has no callable "{method}" on {target!r}.'
                )

        return factory(*arguments)

    def _has_ignored_reference(self, argument: Any) -> bool:
        """Whether an IGNORE reference anywhere in ``argument`` points at nothing."""
        if isinstance(argument, Reference):
            return (
                argument.invalid_behavior is InvalidBehavior.IGNORE
                and not self.has(self._resolve_id(argument.id))
            )
        if isinstance(argument, (list, tuple)):
            return any(self._has_ignored_reference(item) for item in argument)
        if isinstance(argument, dict):
            return any(self._has_ignored_reference(item) for item in argument.values())
        return False

    # ------------------------------------------------------------------
    # Autowiring
    # ------------------------------------------------------------------

    def autowire(self, cls: Union[type, str]) -> List[Any]:
        """
        Work out constructor arguments for ``cls`` from its type hints.

        Returns References and literal defaults; nothing is instantiated.

        Raises:
            AutowiringError: a parameter has no usable type and no default,
                several services match its type, or none does
        """
        if isinstance(cls, str):
            cls = import_string(cls)
        consumer = type_name(cls)

        if cls.__init__ is object.__init__:
            return []

        try:
            signature = inspect.signature(cls)
        except (TypeError, ValueError) as e:
            raise AutowiringError(
                f'Cannot autowire service "{consumer}": its constructor cannot be inspected.',
                consumer=consumer,
                cause=e,
            ) from e

        hints = _constructor_hints(cls)
        arguments: List[Any] = []

        for parameter in signature.parameters.values():
            if parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD):
                continue

            has_default = parameter.default is not inspect.Parameter.empty
            if parameter.kind is parameter.KEYWORD_ONLY:
                if has_default:
                    continue
                raise AutowiringError(
                    f'Cannot autowire service "{consumer}": keyword-only parameter '
                    f'"{parameter.name}" has no default value.',
                    consumer=consumer,
                    parameter=parameter.name,
                )

            dependency, allows_none = _unwrap_annotation(hints.get(parameter.name, parameter.annotation))

            if dependency is None:
                if has_default:
                    arguments.append(parameter.default)
                    continue
                raise AutowiringError(
                    f'Cannot autowire service "{consumer}": parameter "{parameter.name}" '
                    f'must have a class type hint or a default value.',
                    consumer=consumer,
                    parameter=parameter.name,
                )

            found = self._find_service_id_for_type(dependency, consumer, parameter.name)
            if found is not None:
                arguments.append(Reference(found))
            elif has_default:
                arguments.append(parameter.default)
            elif allows_none:
                arguments.append(None)
            else:
                raise AutowiringError(
                    f'Cannot autowire service "{consumer}": parameter "{parameter.name}" '
                    f'references class "{type_name(dependency)}" but no such service exists.',
                    consumer=consumer,
                    parameter=parameter.name,
                    dependency=type_name(dependency),
                    suggestions=[f'Register a service with id "{type_name(dependency)}" or alias it.'],
                )

        return arguments

    def _find_service_id_for_type(self, dependency: type, consumer: str, parameter: str) -> Optional[str]:
        name = type_name(dependency)
        if name in self._definitions or name in self._services:
            return name
        if name in self._aliases:
            return self._resolve_id(name)

        exact: List[str] = []
        candidates: List[str] = []
        for service_id, definition in self._definitions.items():
            if definition.abstract:
                continue
            cls = _definition_class(definition)
            if cls is None:
                continue
            if cls is dependency:
                exact.append(service_id)
            if _is_subclass(cls, dependency):
                candidates.append(service_id)

        for service_id, service in self._services.items():
            if service_id not in self._definitions and isinstance(service, dependency):
                candidates.append(service_id)

        if len(exact) == 1:
            return exact[0]
        if len(candidates) == 1:
            return candidates[0]
        if candidates:
            raise AutowiringError(
                f'Cannot autowire service "{consumer}": parameter "{parameter}" references '
                f'class "{name}" but several services match: {", ".join(sorted(candidates))}.',
                consumer=consumer,
                parameter=parameter,
                dependency=name,
                suggestions=[f'Alias "{name}" to the service that should be injected.'],
            )
        return None


def _constructor_hints(cls: type) -> Dict[str, Any]:
    """
    Evaluate the constructor's annotations one parameter at a time.

    String annotations (``from __future__ import annotations``) are
    evaluated in the constructor's module; a name that only exists under
    TYPE_CHECKING leaves that one parameter unhinted.
    """
    init = cls.__init__
    namespace = getattr(init, "__globals__", {})
    hints: Dict[str, Any] = {}

    for name, annotation in getattr(init, "__annotations__", {}).items():
        if name == "return":
            continue
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, namespace)
            except (NameError, AttributeError, TypeError, SyntaxError):
                continue
        hints[name] = annotation
    return hints


def _unwrap_annotation(annotation: Any) -> Tuple[Optional[type], bool]:
    """Return ``(class to look up or None, whether None is accepted)``."""
    if annotation is inspect.Parameter.empty:
        return None, False

    allows_none = False
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = typing.get_args(annotation)
        non_none = [member for member in members if member is not type(None)]
        allows_none = len(non_none) < len(members)
        if len(non_none) != 1:
            return None, allows_none
        annotation = non_none[0]

    if not isinstance(annotation, type) or annotation in BUILTIN_TYPES:
        return None, allows_none
    return annotation, allows_none


def _definition_class(definition: Definition) -> Optional[type]:
    try:
        cls = definition.resolve_class()
    except ClassNotFoundError:
        return None
    return cls if isinstance(cls, type) else None


def _is_subclass(cls: type, dependency: type) -> bool:
    try:
        return issubclass(cls, dependency)
    except TypeError:
        return False
