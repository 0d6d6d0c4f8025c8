"""
Event channel for the biscuit line.

Synchronous publish/subscribe: ``publish()`` runs every subscriber of the
topic, in subscription order, before it returns. A subscriber that raises is
logged and recorded; the remaining subscribers still run.

Only the most recent ``history_size`` events are kept; ``count()`` reports
lifetime totals per topic.
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class MachineEvent(str, Enum):
    # Requests coming from outside the line
    OVEN_READY = "oven-ready"
    MOTOR_PAUSE = "motor-pause"
    MOTOR_OFF = "motor-off"

    # Emitted by the motor
    PULSE = "pulse"
    PULSE_OVEN = "pulse-oven"
    PULSE_STAMPER = "pulse-stamper"
    OVEN_OFF = "oven-off"
    REVOLUTION = "revolution"


@dataclass(frozen=True)
class Event:
    topic: MachineEvent
    sequence: int

    def __repr__(self) -> str:
        return f"Event({self.topic.value}, #{self.sequence})"


@dataclass(frozen=True)
class SubscriberError:
    topic: MachineEvent
    subscriber: str
    error: Exception


def _callback_name(callback: Callback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventChannel:
    """Named-event bus shared by the motor and the stations."""

    def __init__(self, history_size: int = 1024) -> None:
        self._subscribers: Dict[MachineEvent, List[Callback]] = {}
        self._history: Deque[Event] = deque(maxlen=history_size)
        self._counts: Counter = Counter()
        self._sequence = 0
        self.errors: List[SubscriberError] = []

    def subscribe(self, topic: MachineEvent, callback: Callback) -> None:
        self._subscribers.setdefault(topic, []).append(callback)

    def unsubscribe(self, topic: MachineEvent, callback: Callback) -> None:
        callbacks = self._subscribers.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def subscribers(self, topic: MachineEvent) -> List[Callback]:
        return list(self._subscribers.get(topic, []))

    def publish(self, topic: MachineEvent) -> Event:
        """
        Deliver ``topic`` to all of its subscribers.

        Args:
            topic: Event to publish

        Returns:
            The recorded event
        """
        event = Event(topic=topic, sequence=self._sequence)
        self._sequence += 1
        self._history.append(event)
        self._counts[topic] += 1
        logger.debug("publish %r", event)

        # copy so a callback may (un)subscribe while we iterate
        for callback in list(self._subscribers.get(topic, [])):
            try:
                callback()
            except Exception as exc:
                name = _callback_name(callback)
                logger.exception("Subscriber %s failed on %s", name, topic.value)
                self.errors.append(SubscriberError(topic=topic, subscriber=name, error=exc))
        return event

    @property
    def history(self) -> List[Event]:
        return list(self._history)

    def count(self, topic: MachineEvent) -> int:
        return self._counts[topic]

    def clear_history(self) -> None:
        self._history.clear()
