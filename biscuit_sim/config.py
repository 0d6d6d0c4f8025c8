from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import yaml


@dataclass
class BeltConfig:
    length: int = 6
    extruder_position: int = 0
    stamper_position: int = 1


@dataclass
class TimingConfig:
    pulse_interval: float = 5.0  # seconds awaited after each pulse
    settle_interval: float = 5.0  # seconds awaited after each rotation


@dataclass
class PayloadConfig:
    raw: str = "..B..e.."
    stamp: str = "s.."


@dataclass
class HistoryConfig:
    events: int = 1024  # published events kept by the channel
    frames: int = 1000  # per-revolution snapshots kept by the line


@dataclass
class LoggingConfig:
    level: str = "INFO"
    console: bool = True
    path: Optional[str] = None
    max_bytes: int = 1_000_000
    backup_count: int = 3


@dataclass
class Config:
    belt: BeltConfig = field(default_factory=BeltConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    payload: PayloadConfig = field(default_factory=PayloadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)

    def validate(self) -> None:
        if self.belt.length < 2:
            raise ValueError(f"belt.length must be at least 2, got {self.belt.length}")
        for key in ("extruder_position", "stamper_position"):
            pos = getattr(self.belt, key)
            if not 0 <= pos < self.belt.length:
                raise ValueError(f"belt.{key}={pos} is outside the belt (length {self.belt.length})")
        for key in ("pulse_interval", "settle_interval"):
            if getattr(self.timing, key) < 0:
                raise ValueError(f"timing.{key} must not be negative")
        if not self.payload.raw or not self.payload.stamp:
            raise ValueError("payload.raw and payload.stamp must be non-empty")
        for key in ("events", "frames"):
            if getattr(self.history, key) < 1:
                raise ValueError(f"history.{key} must be at least 1")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Config":
        belt_data = data.get("belt", {}) or {}
        belt = BeltConfig(
            length=int(belt_data.get("length", 6)),
            extruder_position=int(belt_data.get("extruder_position", 0)),
            stamper_position=int(belt_data.get("stamper_position", 1)),
        )

        timing_data = data.get("timing", {}) or {}
        # a single "interval" key sets both waits
        interval = timing_data.get("interval")
        timing = TimingConfig(
            pulse_interval=float(timing_data.get("pulse_interval", 5.0 if interval is None else interval)),
            settle_interval=float(timing_data.get("settle_interval", 5.0 if interval is None else interval)),
        )

        payload_data = data.get("payload", {}) or {}
        payload = PayloadConfig(
            raw=str(payload_data.get("raw", "..B..e..")),
            stamp=str(payload_data.get("stamp", "s..")),
        )

        log_data = data.get("logging", {}) or {}
        log_cfg = LoggingConfig(
            level=str(log_data.get("level", "INFO")),
            console=bool(log_data.get("console", True)),
            path=str(log_data["path"]) if log_data.get("path") else None,
            max_bytes=int(log_data.get("max_bytes", 1_000_000)),
            backup_count=int(log_data.get("backup_count", 3)),
        )

        history_data = data.get("history", {}) or {}
        history = HistoryConfig(
            events=int(history_data.get("events", 1024)),
            frames=int(history_data.get("frames", 1000)),
        )

        cfg = Config(belt=belt, timing=timing, payload=payload, logging=log_cfg, history=history)
        cfg.validate()
        return cfg

    @staticmethod
    def from_yaml(path: str) -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return Config.from_dict(data)
