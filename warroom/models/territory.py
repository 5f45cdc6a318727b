import enum

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from warroom.models.base import Base


class ControlStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    EMBATTLED = "EMBATTLED"


class Territory(Base):
    """Static reference data: what a territory yields per control state."""

    __tablename__ = "territories"

    code: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    oil: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    iron: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    osr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    embattled_oil: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    embattled_iron: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    embattled_osr: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class StartingControl(Base):
    __tablename__ = "starting_territory_control"
    __table_args__ = (
        UniqueConstraint("scenario", "territory_code", name="uq_starting_control_scenario_code"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    scenario: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    territory_code: Mapped[str] = mapped_column(ForeignKey("territories.code"), nullable=False)
    controller_nation_key: Mapped[str] = mapped_column(String(100), nullable=False)


class TerritoryControl(Base):
    """Who controls a territory in one game. Written by movement/combat outcomes."""

    __tablename__ = "territory_control"
    __table_args__ = (
        UniqueConstraint("game_id", "territory_code", name="uq_territory_control_game_code"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False, index=True)
    territory_code: Mapped[str] = mapped_column(String(50), nullable=False)
    nation_id: Mapped[int | None] = mapped_column(
        ForeignKey("nations.id"), nullable=True, default=None
    )
    # Free-form: ACTIVE, EMBATTLED, or anything future rules introduce
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=ControlStatus.ACTIVE.value)
