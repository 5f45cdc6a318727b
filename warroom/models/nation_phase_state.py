import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base
from warroom.models.game import GamePhase


class NationPhaseStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    COMMITTED = "COMMITTED"
    LOCKED = "LOCKED"

    def can_transition_to(self, target: "NationPhaseStatus") -> bool:
        """DRAFT and COMMITTED toggle freely; LOCKED is terminal and only reached from COMMITTED."""
        if self is NationPhaseStatus.LOCKED:
            return target is NationPhaseStatus.LOCKED
        if target is NationPhaseStatus.LOCKED:
            return self is NationPhaseStatus.COMMITTED
        return True


class NationPhaseState(Base):
    __tablename__ = "nation_phase_state"
    __table_args__ = (
        UniqueConstraint(
            "game_id", "nation_id", "round", "phase", name="uq_nation_phase_state_key"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    nation_id: Mapped[int] = mapped_column(ForeignKey("nations.id"), nullable=False, index=True)
    round: Mapped[int] = mapped_column(Integer, nullable=False)
    phase: Mapped[GamePhase] = mapped_column(Enum(GamePhase), nullable=False)
    status: Mapped[NationPhaseStatus] = mapped_column(
        Enum(NationPhaseStatus), nullable=False, default=NationPhaseStatus.DRAFT
    )
    committed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    committed_by_player_id: Mapped[int | None] = mapped_column(
        ForeignKey("players.id"), nullable=True, default=None
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
