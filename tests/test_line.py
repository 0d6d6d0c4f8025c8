import asyncio
import logging

import pytest

from biscuit_sim.config import LoggingConfig
from biscuit_sim.events import MachineEvent
from biscuit_sim.line import BiscuitLine
from biscuit_sim.log import configure_logging
from biscuit_sim.models import MotorState


def test_run_produces_and_drains(line):
    snap = asyncio.run(line.run(6))

    assert snap.state == MotorState.OFF.value
    assert snap.revolution == 6
    assert len(snap.ready) == 6
    assert snap.in_flight == 0
    assert len(line.frames) == 11
    assert [f.revolution for f in list(line.frames)[:6]] == [1, 2, 3, 4, 5, 6]


def test_run_without_drain_pauses(line):
    snap = asyncio.run(line.run(7, drain=False))

    assert snap.state == MotorState.STOPPED.value
    assert snap.revolution == 7
    assert len(snap.ready) == 2
    assert line.channel.subscribers(MachineEvent.REVOLUTION) == [line._record_frame]


def test_run_continues_from_a_paused_line(line):
    asyncio.run(line.run(2, drain=False))
    snap = asyncio.run(line.run(3))

    assert snap.revolution == 5
    assert len(snap.ready) == 5
    assert snap.state == MotorState.OFF.value


def test_run_zero_on_fresh_line_halts_immediately(line):
    snap = asyncio.run(line.run(0))
    assert snap.state == MotorState.OFF.value
    assert line.channel.count(MachineEvent.PULSE) == 0
    assert line.channel.count(MachineEvent.OVEN_OFF) == 1


def test_run_rejects_negative(line):
    with pytest.raises(ValueError):
        asyncio.run(line.run(-1))


def test_line_can_run_again_after_off(line):
    asyncio.run(line.run(2))
    snap = asyncio.run(line.run(2))

    assert snap.state == MotorState.OFF.value
    assert snap.revolution == 4
    assert len(snap.ready) == 4
    assert line.channel.count(MachineEvent.OVEN_OFF) == 2


def test_stamper_on_input_slot(make_line):
    line = make_line(stamper_position=0)
    snap = asyncio.run(line.run(3))

    assert snap.ready == ["..B..e..s.."] * 3
    # pulse-stamper finds the input slot empty during drain
    assert line.stamper.stamped == 3
    assert line.channel.count(MachineEvent.PULSE_STAMPER) == 1


def test_configure_logging_with_file(tmp_path):
    log_path = tmp_path / "logs" / "line.log"
    configure_logging(LoggingConfig(level="DEBUG", console=False, path=str(log_path)))

    logging.getLogger("biscuit_sim.test").debug("hello belt")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path.exists()
    assert "hello belt" in log_path.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG

    configure_logging(LoggingConfig(), level="warning")
    assert logging.getLogger().level == logging.WARNING


def test_recorded_history_is_bounded(make_line):
    cfg = make_line().config
    cfg.history.frames = 4
    cfg.history.events = 5
    line = BiscuitLine(cfg)

    snap = asyncio.run(line.run(6))

    assert len(line.frames) == 4
    assert line.frames[-1].ready == snap.ready
    assert len(line.channel.history) == 5
    assert line.channel.count(MachineEvent.PULSE) == 6
