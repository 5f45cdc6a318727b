"""add nation_phase_state table

Revision ID: 003
Revises: 002
Create Date: 2026-09-16

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None

PHASES = (
    "ECONOMY",
    "PLANNING",
    "MOVEMENT",
    "COMBAT",
    "REFIT_DEPLOY",
    "MORALE",
    "PRODUCTION",
)


def upgrade() -> None:
    op.create_table(
        "nation_phase_state",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("nation_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column(
            "phase",
            # Type created in 001
            postgresql.ENUM(*PHASES, name="gamephase", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "COMMITTED", "LOCKED", name="nationphasestatus"),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("committed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("committed_by_player_id", sa.Integer(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.ForeignKeyConstraint(["nation_id"], ["nations.id"]),
        sa.ForeignKeyConstraint(["committed_by_player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "game_id", "nation_id", "round", "phase", name="uq_nation_phase_state_key"
        ),
    )
    op.create_index(
        op.f("ix_nation_phase_state_game_id"), "nation_phase_state", ["game_id"], unique=False
    )
    op.create_index(op.f("ix_nation_phase_state_id"), "nation_phase_state", ["id"], unique=False)
    op.create_index(
        op.f("ix_nation_phase_state_nation_id"), "nation_phase_state", ["nation_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_nation_phase_state_nation_id"), table_name="nation_phase_state")
    op.drop_index(op.f("ix_nation_phase_state_id"), table_name="nation_phase_state")
    op.drop_index(op.f("ix_nation_phase_state_game_id"), table_name="nation_phase_state")
    op.drop_table("nation_phase_state")

    op.execute("DROP TYPE IF EXISTS nationphasestatus")
