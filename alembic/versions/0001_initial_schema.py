"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates users, greenhouses, plant_types, plants and the two time-series
tables, and seeds plant type 1 (``default``).  Type codes are stored as
single characters guarded by CHECK constraints.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SENSOR_CODES = ("M", "L", "T")
ACTUATOR_CODES = ("V", "L", "P")


def _type_column(name: str, codes: tuple[str, ...]) -> sa.Column:
    return sa.Column(
        "type",
        sa.Enum(*codes, name=name, native_enum=False, create_constraint=True, length=1),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("display_name", sa.String(256), nullable=False),
        sa.Column("email", sa.String(512), nullable=False),
        sa.Column("language", sa.String(2), nullable=False, server_default=sa.text("'en'")),
        sa.Column(
            "joined_on",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "greenhouses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column(
            "user_id",
            sa.String(128),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_greenhouses_user_id", "greenhouses", ["user_id"])

    plant_types = op.create_table(
        "plant_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("moisture_goal", sa.Float(), nullable=False, server_default=sa.text("80.0")),
        sa.Column(
            "light_exposure_min_duration",
            sa.Float(),
            nullable=False,
            server_default=sa.text("14.0"),
        ),
        sa.Column("germination_time", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("growing_time", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    # no explicit id: the first row takes 1 and the sequence stays in step
    op.bulk_insert(plant_types, [{"name": "default"}])

    op.create_table(
        "plants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("previous_id", sa.Uuid(), nullable=True, unique=True),
        sa.Column(
            "greenhouse_id",
            sa.Uuid(),
            sa.ForeignKey("greenhouses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "type",
            sa.Integer(),
            sa.ForeignKey("plant_types.id"),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("override_moisture_goal", sa.Float(), nullable=True),
        sa.Column("override_light_exposure_min_duration", sa.Float(), nullable=True),
        sa.Column("planted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("removed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("removed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("position >= 0", name="ck_plants_position"),
        sa.CheckConstraint(
            "override_moisture_goal >= 0 AND override_moisture_goal <= 100",
            name="ck_plants_override_moisture_goal",
        ),
        sa.CheckConstraint(
            "override_light_exposure_min_duration >= 0 "
            "AND override_light_exposure_min_duration <= 24",
            name="ck_plants_override_light_exposure",
        ),
    )
    op.create_index("ix_plants_greenhouse_id", "plants", ["greenhouse_id"])
    op.create_index(
        "uq_plants_greenhouse_position_active",
        "plants",
        ["greenhouse_id", "position"],
        unique=True,
        postgresql_where=sa.text("NOT removed"),
        sqlite_where=sa.text("removed = 0"),
    )

    for table, enum_name, codes, value_column in (
        ("sensors_data", "sensor_type", SENSOR_CODES, sa.Column("value", sa.Float(), nullable=False)),
        ("actuators_state", "actuator_type", ACTUATOR_CODES, sa.Column("status", sa.Boolean(), nullable=False)),
    ):
        op.create_table(
            table,
            sa.Column(
                "id",
                sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
                primary_key=True,
                autoincrement=True,
            ),
            sa.Column(
                "greenhouse_id",
                sa.Uuid(),
                sa.ForeignKey("greenhouses.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "plant_id",
                sa.Uuid(),
                sa.ForeignKey("plants.id", ondelete="CASCADE"),
                nullable=True,
            ),
            _type_column(enum_name, codes),
            value_column,
            sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
            sa.Column(
                "ingested_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
        )
        op.create_index(f"ix_{table}_greenhouse_ts", table, ["greenhouse_id", "timestamp"])
        op.create_index(f"ix_{table}_plant_ts", table, ["plant_id", "timestamp"])


def downgrade() -> None:
    for table in ("actuators_state", "sensors_data"):
        op.drop_index(f"ix_{table}_plant_ts", table_name=table)
        op.drop_index(f"ix_{table}_greenhouse_ts", table_name=table)
        op.drop_table(table)
    op.drop_index("uq_plants_greenhouse_position_active", table_name="plants")
    op.drop_index("ix_plants_greenhouse_id", table_name="plants")
    op.drop_table("plants")
    op.drop_table("plant_types")
    op.drop_index("ix_greenhouses_user_id", table_name="greenhouses")
    op.drop_table("greenhouses")
    op.drop_table("users")
