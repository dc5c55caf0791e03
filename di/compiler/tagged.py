"""
Armature - Tagged Service Passes

Collect every service carrying a tag, order them by their ``priority``
attribute (higher first, default 0, ties keep registration order) and wire
them into an aggregating service.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from di.compiler.base import CompilerPass
from di.exceptions import InvalidDefinitionError
from di.reference import Reference, ServiceMethod
from observability.logging import get_logger

if TYPE_CHECKING:
    from di.builder import ContainerBuilder

logger = get_logger(__name__)

TaggedEntry = Tuple[str, Dict[str, Any]]


def find_and_sort_tagged_services(container: "ContainerBuilder", tag: str) -> List[TaggedEntry]:
    """Return ``(service_id, attributes)`` pairs for ``tag``, highest priority first."""
    entries: List[Tuple[int, TaggedEntry]] = []
    for service_id, tags in container.find_tagged_service_ids(tag).items():
        for attributes in tags:
            try:
                priority = int(attributes.get("priority", 0))
            except (TypeError, ValueError) as e:
                raise InvalidDefinitionError(
                    f'Service "{service_id}" has a non-integer priority '
                    f'{attributes.get("priority")!r} on tag "{tag}".',
                    cause=e,
                ) from e
            entries.append((priority, (service_id, attributes)))

    # sorted() is stable, so equal priorities stay in registration order
    return [entry for _, entry in sorted(entries, key=lambda item: -item[0])]


class PriorityTaggedServicesPass(CompilerPass):
    """
    Inject every service tagged ``tag`` into the service ``target_id``.

    With ``method`` set, one ``method(Reference(id))`` call is appended per
    tagged service; otherwise the list of references is appended as the next
    constructor argument. A missing target makes the pass a no-op.
    """

    def __init__(self, tag: str, target_id: str, method: Optional[str] = None):
        self.tag = tag
        self.target_id = target_id
        self.method = method

    def process(self, container: "ContainerBuilder") -> None:
        if not (container.has_definition(self.target_id) or container.has_alias(self.target_id)):
            return

        definition = container.find_definition(self.target_id)
        references = [Reference(service_id) for service_id, _ in find_and_sort_tagged_services(container, self.tag)]

        if self.method:
            for reference in references:
                definition.add_method_call(self.method, [reference])
        else:
            definition.add_argument(references)

        logger.debug("Injected tagged services", tag=self.tag, target=self.target_id, count=len(references))


class RegisterListenersPass(CompilerPass):
    """
    Register every ``kernel.event_listener`` tagged service with the dispatcher.

    Tag attributes:
        event: event name (required)
        method: listener method, defaults to ``on_<event>`` with
            non-alphanumerics replaced by underscores
        priority: higher runs first, default 0
    """

    def __init__(
        self,
        dispatcher_id: str = "event_dispatcher",
        listener_tag: str = "kernel.event_listener",
    ):
        self.dispatcher_id = dispatcher_id
        self.listener_tag = listener_tag

    def process(self, container: "ContainerBuilder") -> None:
        if not (container.has_definition(self.dispatcher_id) or container.has_alias(self.dispatcher_id)):
            return

        dispatcher = container.find_definition(self.dispatcher_id)

        for service_id, attributes in find_and_sort_tagged_services(container, self.listener_tag):
            event = attributes.get("event")
            if not event:
                raise InvalidDefinitionError(
                    f'Service "{service_id}" must define the "event" attribute on "{self.listener_tag}" tags.'
                )
            method = attributes.get("method") or "on_" + re.sub(r"[^a-z0-9]+", "_", event.lower()).strip("_")
            priority = int(attributes.get("priority", 0))

            dispatcher.add_method_call("add_listener", [event, ServiceMethod(service_id, method), priority])
            logger.debug(
                "Registered event listener",
                service_id=service_id,
                event_name=event,
                method=method,
                priority=priority,
            )
