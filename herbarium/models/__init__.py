"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from herbarium.models import Greenhouse, Plant, SensorReading, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from herbarium.models.base import (
    Base,
    CreatedAtMixin,
    TimeSeriesMixin,
    UUIDPrimaryKeyMixin,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from herbarium.models.enums import ActuatorTypeEnum, SensorTypeEnum

# ── Directory models ────────────────────────────────────────────────────────
from herbarium.models.greenhouse import Greenhouse, Plant, PlantType

# ── Time-series models ──────────────────────────────────────────────────────
from herbarium.models.sensors import ActuatorState, SensorReading
from herbarium.models.users import User

__all__ = [
    "ActuatorState",
    "ActuatorTypeEnum",
    # Base & mixins
    "Base",
    "CreatedAtMixin",
    # Directory
    "Greenhouse",
    "Plant",
    "PlantType",
    # Time-series
    "SensorReading",
    "SensorTypeEnum",
    "TimeSeriesMixin",
    "UUIDPrimaryKeyMixin",
    "User",
]
