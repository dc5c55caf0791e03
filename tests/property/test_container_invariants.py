"""
Property-Based Tests for Container Invariants

Sharing, cycle detection, parameter resolution, tag ordering and the
frozen registry, checked over generated ids and values.
"""
import pytest
from hypothesis import assume, given, settings, strategies as st

from di.builder import ContainerBuilder
from di.container import Container
from di.exceptions import (
    CircularDependencyError,
    FrozenContainerError,
    ParameterCircularReferenceError,
)
from di.reference import Reference
from di.compiler import find_and_sort_tagged_services
from tests.property.strategies import (
    parameter_chain_strategy,
    parameter_value_strategy,
    priority_tags_strategy,
    service_id_strategy,
)


class Service:
    def __init__(self, dependency=None):
        self.dependency = dependency


class CountingPass:
    def __init__(self):
        self.runs = 0

    def process(self, container):
        self.runs += 1


@pytest.mark.property
class TestSharingInvariants:
    """Shared services are singletons, non-shared ones are not."""

    @given(st.lists(service_id_strategy, min_size=1, max_size=6, unique=True))
    @settings(max_examples=100)
    def test_shared_services_are_identical(self, service_ids):
        builder = ContainerBuilder()
        for service_id in service_ids:
            builder.register(service_id, Service)

        for service_id in service_ids:
            assert builder.get(service_id) is builder.get(service_id)

    @given(service_id_strategy)
    @settings(max_examples=50)
    def test_non_shared_services_are_distinct(self, service_id):
        builder = ContainerBuilder()
        builder.register(service_id, Service).set_shared(False)

        first = builder.get(service_id)
        second = builder.get(service_id)

        assert first is not second
        assert type(first) is type(second)

    @given(service_id_strategy, service_id_strategy)
    @settings(max_examples=100)
    def test_alias_resolves_to_target_instance(self, alias, target):
        assume(alias != target)
        builder = ContainerBuilder()
        builder.register(target, Service)
        builder.set_alias(alias, target)

        assert builder.get(alias) is builder.get(target)


@pytest.mark.property
class TestCycleInvariants:
    """Every cycle is reported with its path, never as a RecursionError."""

    @given(st.lists(service_id_strategy, min_size=1, max_size=8, unique=True))
    @settings(max_examples=100)
    def test_reference_cycle_reports_path(self, service_ids):
        builder = ContainerBuilder()
        for current, following in zip(service_ids, service_ids[1:] + service_ids[:1]):
            builder.register(current, Service).set_arguments([Reference(following)])

        with pytest.raises(CircularDependencyError) as exc_info:
            builder.get(service_ids[0])

        assert exc_info.value.path == service_ids + [service_ids[0]]
        assert exc_info.value.cycle == service_ids + [service_ids[0]]
        assert not builder._loading

    @given(parameter_chain_strategy(min_size=1))
    @settings(max_examples=100)
    def test_parameter_cycle_reports_chain(self, names):
        container = Container()
        for current, following in zip(names, names[1:] + names[:1]):
            container.set_parameter(current, f"%{following}%")

        with pytest.raises(ParameterCircularReferenceError) as exc_info:
            container.get_parameter(names[0])

        assert exc_info.value.chain == names + [names[0]]


@pytest.mark.property
class TestParameterInvariants:
    """Parameter resolution is fully substitutive."""

    @given(parameter_chain_strategy(), parameter_value_strategy)
    @settings(max_examples=200)
    def test_placeholder_chain_resolves_to_final_value(self, names, value):
        container = Container()
        for current, following in zip(names, names[1:]):
            container.set_parameter(current, f"%{following}%")
        container.set_parameter(names[-1], value)

        assert container.get_parameter(names[0]) == value

    @given(parameter_chain_strategy(min_size=2, max_size=2), st.integers())
    @settings(max_examples=100)
    def test_embedded_placeholder_is_text(self, names, number):
        container = Container()
        container.set_parameter(names[0], f"n=%{names[1]}%!")
        container.set_parameter(names[1], number)

        assert container.get_parameter(names[0]) == f"n={number}!"

    @given(parameter_value_strategy)
    @settings(max_examples=200)
    def test_values_without_placeholders_are_unchanged(self, value):
        assert Container().resolve_value(value) == value


@pytest.mark.property
class TestCompileInvariants:
    """compile() runs passes exactly once and freezes the registry."""

    @given(st.integers(min_value=1, max_value=5), st.integers(min_value=1, max_value=4))
    @settings(max_examples=50)
    def test_passes_run_once(self, pass_count, compile_count):
        builder = ContainerBuilder()
        passes = [CountingPass() for _ in range(pass_count)]
        for compiler_pass in passes:
            builder.add_compiler_pass(compiler_pass)

        for _ in range(compile_count):
            builder.compile()

        assert [compiler_pass.runs for compiler_pass in passes] == [1] * pass_count

    @given(service_id_strategy)
    @settings(max_examples=50)
    def test_registry_frozen_after_compile(self, service_id):
        builder = ContainerBuilder()
        builder.register(f"{service_id}.before", Service)
        builder.set_alias(f"{service_id}.alias", f"{service_id}.before")
        builder.compile()

        with pytest.raises(FrozenContainerError):
            builder.register(service_id, Service)
        with pytest.raises(FrozenContainerError):
            builder.set_alias(service_id, f"{service_id}.before")
        with pytest.raises(FrozenContainerError):
            builder.add_compiler_pass(CountingPass())


@pytest.mark.property
class TestTagInvariants:
    """Tagged lookup returns exactly the tagged services, by priority."""

    @given(priority_tags_strategy(), st.lists(service_id_strategy, max_size=4, unique=True))
    @settings(max_examples=200)
    def test_tagged_services_sorted_by_priority(self, tagged, untagged):
        builder = ContainerBuilder()
        tagged_ids = [service_id for service_id, _ in tagged]
        for service_id, priority in tagged:
            builder.register(service_id, Service).add_tag("handler", priority=priority)
        for service_id in untagged:
            if service_id not in tagged_ids:
                builder.register(service_id, Service).add_tag("other")

        assert set(builder.find_tagged_service_ids("handler")) == set(tagged_ids)

        ordered = [entry[0] for entry in find_and_sort_tagged_services(builder, "handler")]
        expected = [service_id for service_id, _ in sorted(tagged, key=lambda item: -item[1])]
        assert ordered == expected
