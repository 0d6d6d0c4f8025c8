from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

Payload = str


class InvariantViolation(RuntimeError):
    """Shared line state reached a condition the motor cannot recover from."""


# =========================
# Domain entities
# =========================

class MotorState(str, Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"
    DRAINING = "DRAINING"
    OFF = "OFF"


@dataclass
class ConveyorState:
    """Belt slots plus the biscuits that already left the belt.

    Index 0 is the input end, index ``length - 1`` the output end. The
    belt never grows or shrinks; :meth:`advance` moves every slot one step
    toward the output and returns what fell off the end.
    """

    length: int = 6
    slots: List[Optional[Payload]] = field(default_factory=list)
    ready: List[Payload] = field(default_factory=list)
    alarms: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.length < 2:
            raise ValueError(f"Conveyor needs at least 2 slots, got {self.length}")
        if not self.slots:
            self.slots = [None] * self.length
        self.check_integrity()

    @property
    def output_index(self) -> int:
        return self.length - 1

    def get(self, index: int) -> Optional[Payload]:
        return self.slots[index]

    def put(self, index: int, payload: Optional[Payload]) -> None:
        self.slots[index] = payload

    def in_flight(self) -> int:
        return sum(1 for s in self.slots if s is not None)

    def advance(self) -> Optional[Payload]:
        last = self.slots[self.output_index]

        # shift everything one slot toward the output
        self.slots[1:] = self.slots[:-1]
        self.slots[0] = None

        if last is not None:
            self.ready.append(last)
        self.check_integrity()
        return last

    def check_integrity(self) -> None:
        if len(self.slots) != self.length:
            raise InvariantViolation(
                f"Belt length changed: expected {self.length} slots, found {len(self.slots)}"
            )

    def alarm(self, msg: str) -> None:
        self.alarms.append(msg)


# =========================
# Snapshot views
# =========================

@dataclass(frozen=True)
class LineSnapshot:
    revolution: int
    tick: int
    state: str
    slots: List[Optional[Payload]]
    ready: List[Payload]
    alarms: List[str]

    @property
    def in_flight(self) -> int:
        return sum(1 for s in self.slots if s is not None)
