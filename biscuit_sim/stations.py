from __future__ import annotations

import logging
from dataclasses import dataclass

from .events import EventChannel, MachineEvent
from .models import ConveyorState, Payload

logger = logging.getLogger(__name__)


@dataclass
class Extruder:
    """Drops a fresh lump of dough onto the belt on every pulse.

    The slot is expected to be empty at pulse time (the motor clears the
    input end on every rotation). If it is not, the old content is replaced
    and an alarm is raised, since the replaced biscuit will never reach the
    ready list.
    """

    conveyor: ConveyorState
    payload: Payload = "..B..e.."
    position: int = 0
    extruded: int = 0

    def subscribe(self, channel: EventChannel) -> None:
        channel.subscribe(MachineEvent.PULSE, self.handle_pulse)

    def handle_pulse(self) -> None:
        current = self.conveyor.get(self.position)
        if current is not None:
            msg = f"Extruder overrun at slot {self.position}: replaced {current!r}"
            logger.warning(msg)
            self.conveyor.alarm(msg)
        self.conveyor.put(self.position, self.payload)
        self.extruded += 1
        logger.debug("Extruder: slot %d <- %r", self.position, self.payload)


@dataclass
class Stamper:
    """Appends a stamp mark to whatever sits under the press.

    The press sits on slot 1 by default, one slot after the extruder, so each
    biscuit is stamped on the pulse after the one that extruded it. This is
    also the only position where the single ``pulse-stamper`` sent at the
    start of a drain lands on a biscuit: the last one extruded, still
    unstamped. With ``position=0`` the stamper (subscribed after the
    extruder) stamps the biscuit extruded by the same pulse, and the drain
    stamp finds the input slot empty.
    """

    conveyor: ConveyorState
    mark: str = "s.."
    position: int = 1
    stamped: int = 0

    def subscribe(self, channel: EventChannel) -> None:
        channel.subscribe(MachineEvent.PULSE, self.handle_pulse)
        channel.subscribe(MachineEvent.PULSE_STAMPER, self.handle_stamp)

    def handle_pulse(self) -> None:
        self._press()

    def handle_stamp(self) -> None:
        self._press()

    def _press(self) -> None:
        current = self.conveyor.get(self.position)
        if current is None:
            return
        self.conveyor.put(self.position, current + self.mark)
        self.stamped += 1
        logger.debug("Stamper: slot %d now %r", self.position, current + self.mark)
