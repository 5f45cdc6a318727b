"""add territories, starting control and per-game territory control

Revision ID: 002
Revises: 001
Create Date: 2026-09-14

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "territories",
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("oil", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("iron", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("osr", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("embattled_oil", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("embattled_iron", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("embattled_osr", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("code"),
    )

    op.create_table(
        "starting_territory_control",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("scenario", sa.String(length=100), nullable=False),
        sa.Column("territory_code", sa.String(length=50), nullable=False),
        sa.Column("controller_nation_key", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(["territory_code"], ["territories.code"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "scenario", "territory_code", name="uq_starting_control_scenario_code"
        ),
    )
    op.create_index(
        op.f("ix_starting_territory_control_id"), "starting_territory_control", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_starting_territory_control_scenario"),
        "starting_territory_control",
        ["scenario"],
        unique=False,
    )

    op.create_table(
        "territory_control",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("territory_code", sa.String(length=50), nullable=False),
        sa.Column("nation_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="ACTIVE"),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.ForeignKeyConstraint(["nation_id"], ["nations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "territory_code", name="uq_territory_control_game_code"),
    )
    op.create_index(op.f("ix_territory_control_game_id"), "territory_control", ["game_id"], unique=False)
    op.create_index(op.f("ix_territory_control_id"), "territory_control", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_territory_control_id"), table_name="territory_control")
    op.drop_index(op.f("ix_territory_control_game_id"), table_name="territory_control")
    op.drop_table("territory_control")

    op.drop_index(
        op.f("ix_starting_territory_control_scenario"), table_name="starting_territory_control"
    )
    op.drop_index(op.f("ix_starting_territory_control_id"), table_name="starting_territory_control")
    op.drop_table("starting_territory_control")

    op.drop_table("territories")
