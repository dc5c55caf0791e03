"""
Tests for di/proxy.py - Lazy Service Proxy.
"""
import threading
from unittest.mock import Mock

import pytest

from di.proxy import LazyServiceProxy, get_wrapped_instance, is_initialized


class Counter:
    def __init__(self):
        self.value = 0
        self.items = ["a", "b"]

    def increment(self):
        self.value += 1
        return self.value

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]


class TestLazyServiceProxy:
    """Tests for LazyServiceProxy."""

    def test_initializer_runs_on_first_use_only(self):
        initializer = Mock(side_effect=Counter)
        proxy = LazyServiceProxy(initializer, label="counter")

        initializer.assert_not_called()
        assert proxy.increment() == 1
        assert proxy.increment() == 2
        initializer.assert_called_once()

    def test_repr_before_initialization(self):
        proxy = LazyServiceProxy(Counter, label="counter")

        assert repr(proxy) == "<LazyServiceProxy counter (uninitialized)>"
        assert not is_initialized(proxy)

    def test_attribute_writes_reach_target(self):
        proxy = LazyServiceProxy(Counter)
        proxy.value = 10

        target = get_wrapped_instance(proxy)
        assert target.value == 10
        del proxy.value
        assert not hasattr(target, "value")

    def test_container_protocols(self):
        proxy = LazyServiceProxy(Counter)

        assert len(proxy) == 2
        assert list(proxy) == ["a", "b"]
        assert proxy[1] == "b"
        assert "a" in proxy

    def test_equality_and_hash_follow_target(self):
        target = Counter()
        proxy = LazyServiceProxy(lambda: target)

        assert proxy == target
        assert proxy == LazyServiceProxy(lambda: target)
        assert hash(proxy) == hash(target)
        assert not (proxy != target)

    def test_callable_target(self):
        proxy = LazyServiceProxy(lambda: (lambda x: x * 2))

        assert proxy(4) == 8

    def test_initializer_error_propagates_and_retries(self):
        attempts = []

        def initializer():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return Counter()

        proxy = LazyServiceProxy(initializer)

        with pytest.raises(RuntimeError):
            proxy.increment()
        assert proxy.increment() == 1

    def test_shared_lock_is_used(self):
        lock = threading.RLock()
        seen = []

        def initializer():
            # The proxy must hold the lock we gave it while initializing
            seen.append(lock._is_owned())
            return Counter()

        proxy = LazyServiceProxy(initializer, lock=lock)
        proxy.increment()

        assert seen == [True]

    def test_get_wrapped_instance_passes_through_plain_objects(self):
        target = Counter()

        assert get_wrapped_instance(target) is target
