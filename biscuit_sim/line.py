from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Optional

from .config import Config
from .events import EventChannel, MachineEvent
from .models import ConveyorState, LineSnapshot, MotorState
from .motor import Motor
from .stations import Extruder, Stamper

logger = logging.getLogger(__name__)


class BiscuitLine:
    """One belt with its motor, extruder and stamper.

    Wiring rules:
    - Everything talks through a single EventChannel.
    - The extruder subscribes before the stamper, so on a shared slot the
      stamp lands on the biscuit extruded by the same pulse.
    - External requests (start/pause/stop) are published on the channel
      rather than calling the motor directly, like any other signal source.
    - Every belt rotation is recorded as a LineSnapshot in ``frames``; only
      the latest ``history.frames`` snapshots are kept.
    """

    def __init__(self, config: Optional[Config] = None, channel: Optional[EventChannel] = None) -> None:
        self.config = config or Config()
        self.config.validate()

        self.channel = channel or EventChannel(history_size=self.config.history.events)
        self.conveyor = ConveyorState(length=self.config.belt.length)
        self.motor = Motor(self.channel, self.conveyor, self.config.timing)
        self.extruder = Extruder(
            self.conveyor,
            payload=self.config.payload.raw,
            position=self.config.belt.extruder_position,
        )
        self.stamper = Stamper(
            self.conveyor,
            mark=self.config.payload.stamp,
            position=self.config.belt.stamper_position,
        )
        self.motor.attach(self.extruder, self.stamper)

        self.frames: Deque[LineSnapshot] = deque(maxlen=self.config.history.frames)
        self.channel.subscribe(MachineEvent.REVOLUTION, self._record_frame)

    # ---------------------------
    # Construction
    # ---------------------------

    @staticmethod
    def from_yaml(path: str) -> "BiscuitLine":
        return BiscuitLine(Config.from_yaml(path))

    # ---------------------------
    # Public API
    # ---------------------------

    def start(self) -> None:
        self.channel.publish(MachineEvent.OVEN_READY)

    def pause(self) -> None:
        self.channel.publish(MachineEvent.MOTOR_PAUSE)

    def stop(self) -> None:
        self.channel.publish(MachineEvent.MOTOR_OFF)

    def snapshot(self) -> LineSnapshot:
        return self.motor.snapshot()

    async def run(self, revolutions: int, drain: bool = True) -> LineSnapshot:
        """Produce ``revolutions`` biscuits, then stop (drain) or pause.

        Must be awaited inside a running event loop.
        """
        if revolutions < 0:
            raise ValueError(f"revolutions must not be negative, got {revolutions}")

        target = self.motor.revolutions + revolutions

        def _limit() -> None:
            if self.motor.state != MotorState.RUNNING or self.motor.revolutions < target:
                return
            if drain:
                self.stop()
            else:
                self.pause()

        self.channel.subscribe(MachineEvent.REVOLUTION, _limit)
        try:
            if revolutions == 0:
                if drain:
                    self.stop()
            else:
                self.start()
            await self.motor.join()
        finally:
            self.channel.unsubscribe(MachineEvent.REVOLUTION, _limit)

        snap = self.snapshot()
        logger.info(
            "Run finished: state=%s revolutions=%d ready=%d",
            snap.state,
            snap.revolution,
            len(snap.ready),
        )
        return snap

    # ---------------------------
    # Internals
    # ---------------------------

    def _record_frame(self) -> None:
        self.frames.append(self.motor.snapshot())
