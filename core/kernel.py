"""
Armature - Kernel

Owns the application's container: builds it once from service loaders,
registers the standard compiler passes and compiles it.

Usage:
    def load_services(builder: ContainerBuilder) -> None:
        builder.register("mailer", Mailer).set_autowired(True)

    kernel = Kernel(environment="prod", loaders=[load_services])
    kernel.boot()
    mailer = kernel.container.get("mailer")

Subclasses customize the build through configure_container() and
compiler_passes().
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable, List, Optional

from config import ArmatureConfig, get_config
from core.errors import KernelNotBootedError
from core.events import EventDispatcher
from di.builder import ContainerBuilder
from di.compiler import (
    AutowirePass,
    CompilerPass,
    RegisterListenersPass,
    ResolveChildDefinitionsPass,
    ResolveReferencesPass,
)
from observability import setup_observability
from observability.logging import LogContext, get_logger
from observability.tracing import span_decorator

logger = get_logger(__name__)

ServiceLoader = Callable[[ContainerBuilder], None]

KERNEL_SERVICE_ID = "kernel"
EVENT_DISPATCHER_ID = "event_dispatcher"


class Kernel:
    """Application kernel with an integrated service container."""

    def __init__(
        self,
        environment: Optional[str] = None,
        debug: Optional[bool] = None,
        config: Optional[ArmatureConfig] = None,
        loaders: Iterable[ServiceLoader] = (),
    ):
        self.config = config or get_config()
        self._environment = environment if environment is not None else self.config.environment
        self._debug = debug if debug is not None else self.config.debug
        self._loaders: List[ServiceLoader] = list(loaders)
        self._container: Optional[ContainerBuilder] = None
        self._boot_lock = threading.Lock()

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def booted(self) -> bool:
        return self._container is not None

    @property
    def container(self) -> ContainerBuilder:
        if self._container is None:
            raise KernelNotBootedError()
        return self._container

    @span_decorator("kernel.boot")
    def boot(self) -> None:
        """Build and compile the container. Later calls do nothing."""
        with self._boot_lock:
            if self._container is not None:
                return

            setup_observability(self.config.logging, self.config.tracing, self.config.metrics)

            with LogContext(kernel_environment=self._environment):
                container = self.build_container()
                container.compile()
                self._container = container
                logger.info(
                    "Kernel booted",
                    debug=self._debug,
                    services=len(container.get_service_ids()),
                )

    def build_container(self) -> ContainerBuilder:
        container = ContainerBuilder()

        container.set_parameter("kernel.environment", self._environment)
        container.set_parameter("kernel.debug", self._debug)
        container.set_parameter("kernel.project_dir", str(self.config.project_dir))

        container.register(KERNEL_SERVICE_ID, type(self)).set_synthetic(True)
        container.set(KERNEL_SERVICE_ID, self)

        for loader in self._loaders:
            loader(container)
        self.configure_container(container)

        if not container.has(EVENT_DISPATCHER_ID):
            container.register(EVENT_DISPATCHER_ID, EventDispatcher)

        for compiler_pass in self.default_compiler_passes():
            container.add_compiler_pass(compiler_pass)
        for compiler_pass in self.compiler_passes():
            container.add_compiler_pass(compiler_pass)

        return container

    def default_compiler_passes(self) -> List[CompilerPass]:
        return [
            ResolveChildDefinitionsPass(),
            AutowirePass(),
            RegisterListenersPass(EVENT_DISPATCHER_ID),
            ResolveReferencesPass(),
        ]

    def configure_container(self, container: ContainerBuilder) -> None:
        """Hook for subclasses to register services."""

    def compiler_passes(self) -> List[CompilerPass]:
        """Hook for subclasses to add passes after the default ones."""
        return []
