"""
Tests for core/events.py - Event Dispatcher.
"""
import pytest

from core.events import EventDispatcher, StoppableEvent
from di.reference import type_name


class UserCreated(StoppableEvent):
    def __init__(self, name):
        super().__init__()
        self.name = name


class Recorder:
    def __init__(self):
        self.calls = []

    def listener(self, tag, stop=False):
        def handle(event):
            self.calls.append(tag)
            if stop:
                event.stop_propagation()
        return handle


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def recorder():
    return Recorder()


class TestEventDispatcher:
    """Tests for listener registration and dispatch order."""

    def test_priority_order_then_registration_order(self, dispatcher, recorder):
        dispatcher.add_listener("user.created", recorder.listener("low"), priority=-10)
        dispatcher.add_listener("user.created", recorder.listener("first"))
        dispatcher.add_listener("user.created", recorder.listener("high"), priority=10)
        dispatcher.add_listener("user.created", recorder.listener("second"))

        dispatcher.dispatch(object(), "user.created")

        assert recorder.calls == ["high", "first", "second", "low"]

    def test_dispatch_returns_event(self, dispatcher):
        event = UserCreated("ada")

        assert dispatcher.dispatch(event, "user.created") is event

    def test_event_name_defaults_to_type_name(self, dispatcher, recorder):
        dispatcher.add_listener(type_name(UserCreated), recorder.listener("typed"))

        dispatcher.dispatch(UserCreated("ada"))

        assert recorder.calls == ["typed"]

    def test_stopped_propagation(self, dispatcher, recorder):
        dispatcher.add_listener("user.created", recorder.listener("first", stop=True), priority=5)
        dispatcher.add_listener("user.created", recorder.listener("second"))

        event = dispatcher.dispatch(UserCreated("ada"), "user.created")

        assert recorder.calls == ["first"]
        assert event.is_propagation_stopped()

    def test_non_stoppable_events_reach_everyone(self, dispatcher, recorder):
        dispatcher.add_listener("tick", recorder.listener("a"))
        dispatcher.add_listener("tick", recorder.listener("b"))

        dispatcher.dispatch({"n": 1}, "tick")

        assert recorder.calls == ["a", "b"]

    def test_no_listeners(self, dispatcher):
        assert not dispatcher.has_listeners()
        assert not dispatcher.has_listeners("user.created")
        assert dispatcher.get_listeners("user.created") == []

    def test_get_all_listeners(self, dispatcher, recorder):
        first = recorder.listener("first")
        second = recorder.listener("second")
        dispatcher.add_listener("a", first)
        dispatcher.add_listener("b", second)

        assert dispatcher.get_listeners() == {"a": [first], "b": [second]}
        assert dispatcher.has_listeners()

    def test_remove_listener(self, dispatcher, recorder):
        keep = recorder.listener("keep")
        drop = recorder.listener("drop")
        dispatcher.add_listener("tick", keep)
        dispatcher.add_listener("tick", drop, priority=3)
        dispatcher.get_listeners("tick")

        dispatcher.remove_listener("tick", drop)
        dispatcher.dispatch(None, "tick")

        assert recorder.calls == ["keep"]
        assert dispatcher.get_listener_priority("tick", drop) is None

    def test_removing_last_listener_clears_event(self, dispatcher, recorder):
        listener = recorder.listener("only")
        dispatcher.add_listener("tick", listener)
        dispatcher.remove_listener("tick", listener)

        assert not dispatcher.has_listeners("tick")
        dispatcher.remove_listener("unknown", listener)

    def test_listener_priority(self, dispatcher, recorder):
        listener = recorder.listener("x")
        dispatcher.add_listener("tick", listener, priority=7)

        assert dispatcher.get_listener_priority("tick", listener) == 7

    def test_listener_must_be_callable(self, dispatcher):
        with pytest.raises(TypeError):
            dispatcher.add_listener("tick", "not callable")
