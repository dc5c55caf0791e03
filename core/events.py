"""
Armature - Event Dispatcher

Priority-ordered, synchronous event dispatch. The dispatcher is an
ordinary service: RegisterListenersPass wires every service tagged
``kernel.event_listener`` into it at compile time.

Usage:
    dispatcher = EventDispatcher()
    dispatcher.add_listener("user.created", send_welcome_mail, priority=10)
    dispatcher.add_listener("user.created", audit_log)

    dispatcher.dispatch(UserCreated(user), "user.created")
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

from di.reference import type_name
from observability.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[Any], Any]


class StoppableEvent:
    """Base class for events whose listeners may halt further dispatch."""

    def __init__(self) -> None:
        self._propagation_stopped = False

    def stop_propagation(self) -> None:
        self._propagation_stopped = True

    def is_propagation_stopped(self) -> bool:
        return self._propagation_stopped


class EventDispatcher:
    """
    Calls listeners registered for an event name, highest priority first.

    Listeners with equal priority run in registration order.
    """

    def __init__(self) -> None:
        # event name -> priority -> listeners
        self._listeners: Dict[str, Dict[int, List[Listener]]] = {}
        self._sorted: Dict[str, List[Listener]] = {}
        self._lock = threading.Lock()

    def add_listener(self, event_name: str, listener: Listener, priority: int = 0) -> None:
        if not callable(listener):
            raise TypeError(f"Listener for {event_name!r} must be callable, got {listener!r}.")
        with self._lock:
            self._listeners.setdefault(event_name, {}).setdefault(priority, []).append(listener)
            self._sorted.pop(event_name, None)

    def remove_listener(self, event_name: str, listener: Listener) -> None:
        with self._lock:
            by_priority = self._listeners.get(event_name)
            if not by_priority:
                return
            for priority in list(by_priority):
                remaining = [registered for registered in by_priority[priority] if registered != listener]
                if remaining:
                    by_priority[priority] = remaining
                else:
                    del by_priority[priority]
            if not by_priority:
                del self._listeners[event_name]
            self._sorted.pop(event_name, None)

    def get_listeners(self, event_name: Optional[str] = None) -> Any:
        """
        Listeners for ``event_name`` in call order, or, without a name, a
        dict of every event name with listeners to its ordered listeners.
        """
        if event_name is None:
            return {name: self.get_listeners(name) for name in list(self._listeners)}

        with self._lock:
            if event_name not in self._sorted:
                by_priority = self._listeners.get(event_name, {})
                self._sorted[event_name] = [
                    listener
                    for priority in sorted(by_priority, reverse=True)
                    for listener in by_priority[priority]
                ]
            return list(self._sorted[event_name])

    def has_listeners(self, event_name: Optional[str] = None) -> bool:
        if event_name is None:
            return bool(self._listeners)
        return bool(self._listeners.get(event_name))

    def get_listener_priority(self, event_name: str, listener: Listener) -> Optional[int]:
        for priority, listeners in self._listeners.get(event_name, {}).items():
            if any(registered == listener for registered in listeners):
                return priority
        return None

    def dispatch(self, event: Any, event_name: Optional[str] = None) -> Any:
        """Call each listener with ``event`` and return the event."""
        event_name = event_name or type_name(type(event))
        listeners = self.get_listeners(event_name)

        logger.debug("Dispatching event", event_name=event_name, listeners=len(listeners))

        for listener in listeners:
            if isinstance(event, StoppableEvent) and event.is_propagation_stopped():
                logger.debug("Event propagation stopped", event_name=event_name)
                break
            listener(event)

        return event
