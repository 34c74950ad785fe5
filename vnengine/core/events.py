"""
Typed event bus for decoupled communication.

Event types are Enum members, so subscribers never match on strings.
The dialogue runner publishes its lifecycle here; UI, audio and quest
code subscribe without the runner knowing about them.

Usage:
    bus = EventBus()
    bus.subscribe(DialogueEvent.ENDED, on_dialogue_ended)
    bus.publish(DialogueEvent.ENDED, graph="intro")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class DialogueEvent(Enum):
    """Events published by the dialogue runner."""
    STARTED = auto()
    NODE_ENTERED = auto()
    NODE_COMPLETED = auto()    # One-time node recorded as complete
    OPTION_SELECTED = auto()
    ITEM_PRESENTED = auto()
    ENDED = auto()


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Keyword data passed to publish()
        consumed: Set by a handler to stop propagation
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Stop delivery to lower priority handlers."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]


@dataclass(eq=False)
class _Subscription:
    priority: int
    handler: Any   # callable, ref or WeakMethod
    one_shot: bool

    def resolve(self) -> EventHandler | None:
        if isinstance(self.handler, (ref, WeakMethod)):
            return self.handler()
        return self.handler


class EventBus:
    """
    Publish/subscribe hub.

    Features:
    - Enum-typed events
    - Priority ordering (highest first, ties keep subscription order)
    - Weak references by default
    - One-shot handlers
    - Consumption stops propagation
    - Events published from inside a handler are queued
    """

    def __init__(self):
        self._subscriptions: dict[Enum, list[_Subscription]] = {}
        self._queue: list[Event] = []
        self._dispatching = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback function(event: Event)
            priority: Higher priority handlers are called first
            one_shot: Remove the handler after its first call
            weak: Hold only a weak reference to the handler
        """
        if weak:
            target = WeakMethod(handler) if hasattr(handler, '__self__') else ref(handler)
        else:
            target = handler

        subs = self._subscriptions.setdefault(event_type, [])
        index = len(subs)
        for i, sub in enumerate(subs):
            if priority > sub.priority:
                index = i
                break
        subs.insert(index, _Subscription(priority, target, one_shot))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """Remove a handler from an event type."""
        subs = self._subscriptions.get(event_type)
        if not subs:
            return
        self._subscriptions[event_type] = [s for s in subs if s.resolve() != handler]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)
        if self._dispatching:
            self._queue.append(event)
        else:
            self._dispatch(event)
        return event

    def has_subscribers(self, event_type: Enum) -> bool:
        return bool(self._subscriptions.get(event_type))

    def clear(self, event_type: Enum | None = None) -> None:
        """Clear handlers for one event type, or all of them."""
        if event_type is None:
            self._subscriptions.clear()
        else:
            self._subscriptions.pop(event_type, None)

    def _dispatch(self, event: Event) -> None:
        subs = self._subscriptions.get(event.type)
        if subs:
            self._dispatching = True
            finished: list[_Subscription] = []
            try:
                for sub in list(subs):
                    handler = sub.resolve()
                    if handler is None:
                        finished.append(sub)
                        continue
                    try:
                        handler(event)
                    except Exception:
                        logger.exception(f"Error in event handler for {event.type}")
                    if sub.one_shot:
                        finished.append(sub)
                    if event.consumed:
                        break
            finally:
                for sub in finished:
                    if sub in subs:
                        subs.remove(sub)
                self._dispatching = False

        while self._queue and not self._dispatching:
            self._dispatch(self._queue.pop(0))
