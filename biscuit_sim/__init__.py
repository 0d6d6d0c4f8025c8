"""Biscuit line (extruder -> stamper -> oven belt) simulator.

Public entrypoints:
- BiscuitLine (from biscuit_sim.line)
- Motor (from biscuit_sim.motor)
- EventChannel, MachineEvent (from biscuit_sim.events)
"""
from .config import Config
from .events import EventChannel, MachineEvent
from .line import BiscuitLine
from .models import ConveyorState, InvariantViolation, LineSnapshot, MotorState
from .motor import Motor
from .stations import Extruder, Stamper
