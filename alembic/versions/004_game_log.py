"""add game_log table

Revision ID: 004
Revises: 003
Create Date: 2026-09-18

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "004"
down_revision = "003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "game_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column(
            "event_type",
            sa.Enum("GAME_STARTED", "PHASE_ADVANCED", "ECONOMY_APPLIED", name="gameeventtype"),
            nullable=False,
        ),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index(op.f("ix_game_log_game_id"), "game_log", ["game_id"], unique=False)
    op.create_index(op.f("ix_game_log_id"), "game_log", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_game_log_id"), table_name="game_log")
    op.drop_index(op.f("ix_game_log_game_id"), table_name="game_log")
    op.drop_table("game_log")

    op.execute("DROP TYPE IF EXISTS gameeventtype")
