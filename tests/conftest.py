import pytest

from biscuit_sim.config import Config, TimingConfig
from biscuit_sim.line import BiscuitLine


@pytest.fixture
def make_line():
    """Build a line whose interval waits take no wall-clock time."""

    def _make(**belt):
        cfg = Config(timing=TimingConfig(pulse_interval=0.0, settle_interval=0.0))
        for key, value in belt.items():
            setattr(cfg.belt, key, value)
        return BiscuitLine(cfg)

    return _make


@pytest.fixture
def line(make_line):
    return make_line()
