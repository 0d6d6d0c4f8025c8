from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .config import TimingConfig
from .events import EventChannel, MachineEvent
from .models import ConveyorState, InvariantViolation, LineSnapshot, MotorState

logger = logging.getLogger(__name__)


class Motor:
    """Drives the belt and decides when the oven run is over.

    Lifecycle:
    - ``on()`` starts the run loop (or keeps the current one going).
    - ``pause()`` lets the current cycle finish, then the loop exits.
    - ``off()`` halts at once if nothing is on the belt, otherwise switches
      the loop to draining: no more extrusion, one last stamp, and the belt
      keeps turning until every biscuit that entered has come out.

    All work runs on one asyncio loop. The only suspension points are the
    two interval waits inside a cycle, so event callbacks always see a
    consistent belt.
    """

    def __init__(
        self,
        channel: EventChannel,
        conveyor: ConveyorState,
        timing: Optional[TimingConfig] = None,
    ) -> None:
        self.channel = channel
        self.conveyor = conveyor
        self.timing = timing or TimingConfig()

        self.revolutions: int = 0
        self.pulses_emitted: int = 0
        self.tick: int = 0

        self._is_working = False
        self._should_stop_motor = False
        self._should_send_pulse_stamper = False
        self._halted = False
        self._pulse_pending = False
        self._drain_cycles = 0

        self._task: Optional[asyncio.Task] = None
        self.stations: List[object] = []

        channel.subscribe(MachineEvent.OVEN_READY, self.on)
        channel.subscribe(MachineEvent.MOTOR_PAUSE, self.pause)
        channel.subscribe(MachineEvent.MOTOR_OFF, self.off)

    # ---------------------------
    # Wiring
    # ---------------------------

    def attach(self, *stations) -> None:
        """Register stations; they are subscribed in the order given."""
        for st in stations:
            st.subscribe(self.channel)
            self.stations.append(st)

    # ---------------------------
    # State
    # ---------------------------

    @property
    def state(self) -> MotorState:
        if self._is_working:
            return MotorState.DRAINING if self._should_stop_motor else MotorState.RUNNING
        return MotorState.OFF if self._halted else MotorState.STOPPED

    @property
    def is_working(self) -> bool:
        return self._is_working

    @property
    def draining(self) -> bool:
        return self._is_working and self._should_stop_motor

    @property
    def loop_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> LineSnapshot:
        return LineSnapshot(
            revolution=self.revolutions,
            tick=self.tick,
            state=self.state.value,
            slots=list(self.conveyor.slots),
            ready=list(self.conveyor.ready),
            alarms=list(self.conveyor.alarms),
        )

    # ---------------------------
    # Commands
    # ---------------------------

    def on(self) -> None:
        if self.state == MotorState.RUNNING:
            logger.debug("Motor already running; start request ignored")
            return

        logger.info("Motor ON (from %s, revolution %d)", self.state.value, self.revolutions)
        self._ensure_loop()
        self._is_working = True
        self._should_stop_motor = False
        self._should_send_pulse_stamper = False
        self._halted = False
        self._drain_cycles = 0

    def pause(self) -> None:
        if not self._is_working:
            logger.debug("Motor not working; pause request ignored")
            return
        logger.info("Motor paused at revolution %d", self.revolutions)
        self._is_working = False

    def off(self) -> None:
        if self.state == MotorState.OFF:
            logger.debug("Motor already off; stop request ignored")
            return

        logger.info(
            "Motor OFF requested (revolutions=%d, ready=%d)",
            self.revolutions,
            len(self.conveyor.ready),
        )

        if not self._is_working and not self.loop_active:
            self._check_in_flight()

        if self.revolutions == len(self.conveyor.ready) and not self._pulse_pending:
            self._halt()
            return

        if not self._is_working:
            self._ensure_loop()
            self._is_working = True

        if not self._should_stop_motor:
            self._should_stop_motor = True
            self._should_send_pulse_stamper = True
            self._drain_cycles = 0
        logger.info("Motor draining %d biscuit(s)", self.revolutions - len(self.conveyor.ready))

    async def join(self) -> None:
        """Wait until no run loop is active. Loop errors are raised here."""
        while self._task is not None and not self._task.done():
            await self._task
        if self._task is not None:
            # re-raise a failure of a task that finished before we got here
            self._task.result()

    # ---------------------------
    # Run loop
    # ---------------------------

    def _ensure_loop(self) -> None:
        if self.loop_active:
            # the running loop sees the new flags at its next check
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="biscuit-motor")

    async def _run(self) -> None:
        logger.debug("Motor loop started")
        while self._is_working:
            if not self._should_stop_motor:
                await self._pulse()
                self.revolutions += 1
                if self.revolutions != self.pulses_emitted:
                    raise InvariantViolation(
                        f"revolutions={self.revolutions} but {self.pulses_emitted} pulses were emitted"
                    )
            else:
                if self._should_send_pulse_stamper:
                    self._should_send_pulse_stamper = False
                    self.channel.publish(MachineEvent.PULSE_STAMPER)
                self.channel.publish(MachineEvent.PULSE_OVEN)
                self._drain_cycles += 1

            done = self.conveyor.advance()
            if done is not None:
                logger.info("Biscuit ready: %r (%d total)", done, len(self.conveyor.ready))
            logger.debug(
                "Revolution %d: on conveyor %s, ready %d",
                self.revolutions,
                self.conveyor.slots,
                len(self.conveyor.ready),
            )
            self.channel.publish(MachineEvent.REVOLUTION)

            await self._wait(self.timing.settle_interval)

            if self._should_stop_motor:
                if self.revolutions == len(self.conveyor.ready):
                    self._halt()
                    return
                if self._drain_cycles >= self.conveyor.length:
                    raise InvariantViolation(
                        f"Drain did not converge after {self._drain_cycles} cycles: "
                        f"revolutions={self.revolutions}, ready={len(self.conveyor.ready)}"
                    )
        logger.debug("Motor loop exited (state %s)", self.state.value)

    async def _pulse(self) -> None:
        self._pulse_pending = True
        try:
            self.pulses_emitted += 1
            self.channel.publish(MachineEvent.PULSE)
            await self._wait(self.timing.pulse_interval)
        finally:
            self._pulse_pending = False

    async def _wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
        self.tick += 1

    def _halt(self) -> None:
        self._is_working = False
        self._should_stop_motor = False
        self._should_send_pulse_stamper = False
        self._halted = True
        logger.info("Motor halted after %d revolutions; oven off", self.revolutions)
        self.channel.publish(MachineEvent.OVEN_OFF)

    def _check_in_flight(self) -> None:
        expected = self.revolutions - len(self.conveyor.ready)
        on_belt = self.conveyor.in_flight()
        if expected != on_belt:
            msg = f"Stop requested with {on_belt} biscuit(s) on the belt but {expected} unaccounted for"
            logger.error(msg)
            self.conveyor.alarm(msg)
