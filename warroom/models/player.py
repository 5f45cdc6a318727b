from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base


class Player(Base):
    __tablename__ = "players"
    __table_args__ = (UniqueConstraint("game_id", "user_id", name="uq_players_game_user"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    # Opaque subject issued by the external auth provider
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_host: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_nation: Mapped[str | None] = mapped_column(String(100), nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class PlayerNation(Base):
    """A nation controlled by a player. A player may control several nations."""

    __tablename__ = "player_nations"
    __table_args__ = (
        UniqueConstraint("game_id", "nation_key", name="uq_player_nations_game_nation"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False, index=True)
    nation_key: Mapped[str] = mapped_column(String(100), nullable=False)
