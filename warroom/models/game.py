import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base


class GameStatus(str, enum.Enum):
    LOBBY = "LOBBY"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class GamePhase(str, enum.Enum):
    ECONOMY = "ECONOMY"
    PLANNING = "PLANNING"
    MOVEMENT = "MOVEMENT"
    COMBAT = "COMBAT"
    REFIT_DEPLOY = "REFIT_DEPLOY"
    MORALE = "MORALE"
    PRODUCTION = "PRODUCTION"


class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    scenario: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[GameStatus] = mapped_column(
        Enum(GameStatus), nullable=False, default=GameStatus.LOBBY
    )
    # Only meaningful while status is ACTIVE.
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_phase: Mapped[GamePhase] = mapped_column(
        Enum(GamePhase), nullable=False, default=GamePhase.ECONOMY
    )
    max_players: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
