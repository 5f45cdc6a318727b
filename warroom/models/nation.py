from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base


class Nation(Base):
    __tablename__ = "nations"
    __table_args__ = (
        UniqueConstraint("game_id", "nation_key", name="uq_nations_game_key"),
        CheckConstraint("oil >= 0 AND iron >= 0 AND osr >= 0", name="ck_nations_balances"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    # Always stored normalized, see nation_service.normalize_nation_key
    nation_key: Mapped[str] = mapped_column(String(100), nullable=False)
    oil: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    iron: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    osr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    homeland_status: Mapped[str | None] = mapped_column(String(50), nullable=True, default=None)
