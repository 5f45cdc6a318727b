"""initial schema: games, players, nations

Revision ID: 001
Revises:
Create Date: 2026-09-14

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
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
        "games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("scenario", sa.String(length=100), nullable=False),
        sa.Column(
            "status",
            sa.Enum("LOBBY", "ACTIVE", "FINISHED", name="gamestatus"),
            nullable=False,
        ),
        sa.Column("current_round", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "current_phase",
            sa.Enum(*PHASES, name="gamephase"),
            nullable=False,
            server_default="ECONOMY",
        ),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_games_id"), "games", ["id"], unique=False)

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("is_host", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("current_nation", sa.String(length=100), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "user_id", name="uq_players_game_user"),
    )
    op.create_index(op.f("ix_players_game_id"), "players", ["game_id"], unique=False)
    op.create_index(op.f("ix_players_id"), "players", ["id"], unique=False)
    op.create_index(op.f("ix_players_user_id"), "players", ["user_id"], unique=False)

    op.create_table(
        "nations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("nation_key", sa.String(length=100), nullable=False),
        sa.Column("oil", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("iron", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("osr", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("homeland_status", sa.String(length=50), nullable=True),
        sa.CheckConstraint("oil >= 0 AND iron >= 0 AND osr >= 0", name="ck_nations_balances"),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "nation_key", name="uq_nations_game_key"),
    )
    op.create_index(op.f("ix_nations_game_id"), "nations", ["game_id"], unique=False)
    op.create_index(op.f("ix_nations_id"), "nations", ["id"], unique=False)

    op.create_table(
        "player_nations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("nation_key", sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_id", "nation_key", name="uq_player_nations_game_nation"),
    )
    op.create_index(op.f("ix_player_nations_game_id"), "player_nations", ["game_id"], unique=False)
    op.create_index(op.f("ix_player_nations_id"), "player_nations", ["id"], unique=False)
    op.create_index(
        op.f("ix_player_nations_player_id"), "player_nations", ["player_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_player_nations_player_id"), table_name="player_nations")
    op.drop_index(op.f("ix_player_nations_id"), table_name="player_nations")
    op.drop_index(op.f("ix_player_nations_game_id"), table_name="player_nations")
    op.drop_table("player_nations")

    op.drop_index(op.f("ix_nations_id"), table_name="nations")
    op.drop_index(op.f("ix_nations_game_id"), table_name="nations")
    op.drop_table("nations")

    op.drop_index(op.f("ix_players_user_id"), table_name="players")
    op.drop_index(op.f("ix_players_id"), table_name="players")
    op.drop_index(op.f("ix_players_game_id"), table_name="players")
    op.drop_table("players")

    op.drop_index(op.f("ix_games_id"), table_name="games")
    op.drop_table("games")

    op.execute("DROP TYPE IF EXISTS gamestatus")
    op.execute("DROP TYPE IF EXISTS gamephase")
