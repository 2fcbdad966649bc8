"""Single-character type codes for the time-series tables.

The stored value is the one-letter code (``M``, ``L``, ``T`` / ``V``, ``L``,
``P``); columns are non-native enums backed by a CHECK constraint so the
database rejects any other character.
"""

from enum import StrEnum

# ── Sensor readings ─────────────────────────────────────────────────────────


class SensorTypeEnum(StrEnum):
    """What a sensor reading measures."""

    moisture = "M"
    light = "L"
    tank_level = "T"


# ── Actuator states ─────────────────────────────────────────────────────────


class ActuatorTypeEnum(StrEnum):
    """Which controllable device an actuator record refers to."""

    valve = "V"
    light_strip = "L"
    pump = "P"


def enum_values(enum_cls: type[StrEnum]) -> list[str]:
    """Persist enum *values* (the letter codes) instead of member names."""
    return [member.value for member in enum_cls]
