import textwrap

import pytest

from biscuit_sim.config import Config
from biscuit_sim.line import BiscuitLine


def test_defaults():
    cfg = Config()
    cfg.validate()
    assert cfg.belt.length == 6
    assert cfg.belt.stamper_position == 1
    assert cfg.timing.pulse_interval == 5.0
    assert cfg.payload.raw == "..B..e.."


def test_from_yaml(tmp_path):
    path = tmp_path / "line.yaml"
    path.write_text(
        textwrap.dedent(
            """
            belt:
              length: 8
              stamper_position: 0
            timing:
              interval: 0
            payload:
              stamp: "S"
            logging:
              level: debug
              path: logs/line.log
            history:
              frames: 10
            """
        ),
        encoding="utf-8",
    )

    cfg = Config.from_yaml(str(path))

    assert cfg.belt.length == 8
    assert cfg.belt.extruder_position == 0
    assert cfg.belt.stamper_position == 0
    assert cfg.timing.pulse_interval == 0.0
    assert cfg.timing.settle_interval == 0.0
    assert cfg.payload.raw == "..B..e.."
    assert cfg.payload.stamp == "S"
    assert cfg.logging.level == "debug"
    assert cfg.logging.path == "logs/line.log"
    assert cfg.history.frames == 10
    assert cfg.history.events == 1024


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert Config.from_yaml(str(path)) == Config()


def test_line_from_yaml(tmp_path):
    path = tmp_path / "line.yaml"
    path.write_text("belt:\n  length: 4\n", encoding="utf-8")
    line = BiscuitLine.from_yaml(str(path))
    assert line.conveyor.length == 4
    assert line.snapshot().slots == [None] * 4


@pytest.mark.parametrize(
    "data",
    [
        {"belt": {"length": 1}},
        {"belt": {"stamper_position": 6}},
        {"belt": {"extruder_position": -1}},
        {"timing": {"pulse_interval": -1}},
        {"payload": {"stamp": ""}},
        {"history": {"frames": 0}},
    ],
)
def test_invalid_config_rejected(data):
    with pytest.raises(ValueError):
        Config.from_dict(data)
