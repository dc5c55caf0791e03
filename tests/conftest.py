"""
Armature - Test Configuration

Pytest fixtures and sample services shared by all tests.
"""
import pytest

from di.builder import ContainerBuilder
from di.container import Container


class Clock:
    """Dependency-free service."""

    def now(self) -> int:
        return 42


class Greeter:
    """Service with one constructor dependency and one setter."""

    def __init__(self, clock: Clock, greeting: str = "Hello"):
        self.clock = clock
        self.greeting = greeting
        self.name = None

    def set_name(self, name: str) -> None:
        self.name = name

    def greet(self) -> str:
        return f"{self.greeting}, {self.name}"


@pytest.fixture
def container() -> Container:
    """Plain runtime container with a couple of parameters."""
    return Container({"app.name": "demo", "app.port": 8080})


@pytest.fixture
def builder() -> ContainerBuilder:
    """Empty, uncompiled builder."""
    return ContainerBuilder()


@pytest.fixture
def greeter_builder(builder: ContainerBuilder) -> ContainerBuilder:
    """Builder with a clock and a greeter wired by reference."""
    from di.reference import Reference

    builder.set_parameter("greeting", "Hi")
    builder.register("clock", Clock)
    builder.register("greeter", Greeter).set_arguments([Reference("clock"), "%greeting%"])
    return builder
