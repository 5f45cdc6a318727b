import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, JSON, String, func
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base


class GameEventType(str, enum.Enum):
    GAME_STARTED = "GAME_STARTED"
    PHASE_ADVANCED = "PHASE_ADVANCED"
    ECONOMY_APPLIED = "ECONOMY_APPLIED"


def economy_applied_key(game_id: int, round_number: int) -> str:
    return f"{game_id}:{GameEventType.ECONOMY_APPLIED.value}:{round_number}"


class GameLog(Base):
    """Append-only event log.

    Entries for effects that must happen at most once carry an
    ``idempotency_key``; the unique index makes the store reject a second
    entry for the same effect.
    """

    __tablename__ = "game_log"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    event_type: Mapped[GameEventType] = mapped_column(Enum(GameEventType), nullable=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
