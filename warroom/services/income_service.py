"""Income engine: per-nation resource income from controlled territories.

``compute_income`` is pure and may be called freely, e.g. to preview the
balances after income. ``apply_income`` credits the result to every nation
of a game at most once per round.
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.data.nations import list_nations
from warroom.errors import IncomeApplicationError, InvalidPhase, NotActive, NotFound
from warroom.models.game import GameStatus
from warroom.models.game_log import GameEventType, GameLog, economy_applied_key
from warroom.models.nation import Nation
from warroom.models.territory import ControlStatus, Territory, TerritoryControl
from warroom.services.game_service import get_game, lock_game
from warroom.services.nation_service import get_nations_for_game, normalize_nation_key
from warroom.services.notification_service import ChangeKind, notify_change

logger = logging.getLogger(__name__)

RESOURCES = ("oil", "iron", "osr")


@dataclass
class IncomeTotals:
    oil: int = 0
    iron: int = 0
    osr: int = 0

    def add(self, other: "IncomeTotals") -> "IncomeTotals":
        return IncomeTotals(self.oil + other.oil, self.iron + other.iron, self.osr + other.osr)


@dataclass
class TerritoryIncomeLine:
    territory_code: str
    territory_name: str
    status: str
    used_embattled_side: bool
    oil: int
    iron: int
    osr: int


@dataclass
class NationIncomeBreakdown:
    nation_id: int
    nation_key: str
    lines: list[TerritoryIncomeLine] = field(default_factory=list)
    totals: IncomeTotals = field(default_factory=IncomeTotals)
    # Controlled territories skipped for missing reference data
    warnings: list[str] = field(default_factory=list)
    # Reasons of the override rules applied to this nation
    overrides: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NationIncomeBreakdown":
        return cls(
            nation_id=data["nation_id"],
            nation_key=data["nation_key"],
            lines=[TerritoryIncomeLine(**line) for line in data.get("lines", [])],
            totals=IncomeTotals(**data["totals"]),
            warnings=list(data.get("warnings", [])),
            overrides=list(data.get("overrides", [])),
        )


@dataclass(frozen=True)
class IncomeOverride:
    """Post-processing rule forcing some of a nation's income to zero."""

    nation_key: str
    zeroed: tuple[str, ...]
    reason: str

    def applies_to(self, breakdown: NationIncomeBreakdown) -> bool:
        return normalize_nation_key(breakdown.nation_key) == normalize_nation_key(self.nation_key)

    def apply(self, breakdown: NationIncomeBreakdown) -> None:
        for resource in self.zeroed:
            setattr(breakdown.totals, resource, 0)
            for line in breakdown.lines:
                setattr(line, resource, 0)
        breakdown.overrides.append(self.reason)


INCOME_OVERRIDES: list[IncomeOverride] = [
    IncomeOverride(
        nation_key=nation.nation_key,
        zeroed=nation.income_exempt,
        reason=nation.exemption_reason,
    )
    for nation in list_nations()
    if nation.income_exempt
]


def _is_embattled(status: str) -> bool:
    return status.strip().upper() == ControlStatus.EMBATTLED.value


def _territory_line(territory: Territory, status: str) -> TerritoryIncomeLine:
    embattled = _is_embattled(status)
    return TerritoryIncomeLine(
        territory_code=territory.code,
        territory_name=territory.name,
        status=status,
        used_embattled_side=embattled,
        oil=territory.embattled_oil if embattled else territory.oil,
        iron=territory.embattled_iron if embattled else territory.iron,
        osr=territory.embattled_osr if embattled else territory.osr,
    )


def compute_nation_income(
    nation: Nation,
    controls: Iterable[TerritoryControl],
    territories: Mapping[str, Territory],
) -> NationIncomeBreakdown:
    breakdown = NationIncomeBreakdown(nation_id=nation.id, nation_key=nation.nation_key)
    for control in controls:
        territory = territories.get(control.territory_code)
        if territory is None:
            breakdown.warnings.append(
                f"No yield data for territory {control.territory_code}; skipped"
            )
            continue
        line = _territory_line(territory, control.status)
        breakdown.lines.append(line)
        breakdown.totals.oil += line.oil
        breakdown.totals.iron += line.iron
        breakdown.totals.osr += line.osr

    breakdown.lines.sort(key=lambda line: (line.territory_name, line.territory_code))
    return breakdown


def compute_income(
    nations: Iterable[Nation],
    controls: Iterable[TerritoryControl],
    territories: Mapping[str, Territory],
    overrides: Iterable[IncomeOverride] | None = None,
) -> list[NationIncomeBreakdown]:
    """Income breakdown for each nation, in the order the nations are given.

    EMBATTLED control yields the territory's embattled triple, any other
    status the active one. Override rules run after aggregation.
    """
    rules = list(INCOME_OVERRIDES if overrides is None else overrides)

    controls_by_nation: dict[int, list[TerritoryControl]] = defaultdict(list)
    for control in controls:
        if control.nation_id is not None:
            controls_by_nation[control.nation_id].append(control)

    breakdowns: list[NationIncomeBreakdown] = []
    for nation in nations:
        breakdown = compute_nation_income(nation, controls_by_nation.get(nation.id, []), territories)
        for rule in rules:
            if rule.applies_to(breakdown):
                rule.apply(breakdown)
        breakdowns.append(breakdown)
    return breakdowns


def project_balances(
    nations: Iterable[Nation], breakdowns: Iterable[NationIncomeBreakdown]
) -> dict[str, IncomeTotals]:
    """Balances each nation would have after the given income is credited."""
    totals_by_id = {b.nation_id: b.totals for b in breakdowns}
    return {
        nation.nation_key: IncomeTotals(nation.oil, nation.iron, nation.osr).add(
            totals_by_id.get(nation.id, IncomeTotals())
        )
        for nation in nations
    }


# ---------------------------------------------------------------------------
# Store access
# ---------------------------------------------------------------------------


@dataclass
class EconomySnapshot:
    nations: list[Nation]
    controls: list[TerritoryControl]
    territories_by_code: dict[str, Territory]


async def fetch_economy_snapshot(db: AsyncSession, game_id: int) -> EconomySnapshot:
    """Nations, their control rows and the territories those rows reference."""
    nations = await get_nations_for_game(db, game_id)
    nation_ids = {n.id for n in nations}

    result = await db.execute(
        select(TerritoryControl).where(TerritoryControl.game_id == game_id)
    )
    controls = [c for c in result.scalars().all() if c.nation_id in nation_ids]

    territories_by_code: dict[str, Territory] = {}
    codes = sorted({c.territory_code for c in controls})
    if codes:
        result = await db.execute(select(Territory).where(Territory.code.in_(codes)))
        territories_by_code = {t.code: t for t in result.scalars().all()}

    return EconomySnapshot(nations=nations, controls=controls, territories_by_code=territories_by_code)


async def get_income_log(db: AsyncSession, game_id: int, round_number: int) -> GameLog | None:
    result = await db.execute(
        select(GameLog)
        .where(
            GameLog.game_id == game_id,
            GameLog.event_type == GameEventType.ECONOMY_APPLIED,
            GameLog.round == round_number,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def is_income_applied(db: AsyncSession, game_id: int, round_number: int) -> bool:
    return await get_income_log(db, game_id, round_number) is not None


@dataclass
class IncomePreview:
    round: int
    already_applied: bool
    breakdowns: list[NationIncomeBreakdown]
    projected: dict[str, IncomeTotals]


async def preview_income(db: AsyncSession, game_id: int) -> IncomePreview:
    """What apply_income would credit for the current round; nothing is written."""
    game = await get_game(db, game_id)
    if game is None:
        raise NotFound("Game not found")
    snapshot = await fetch_economy_snapshot(db, game_id)
    breakdowns = compute_income(snapshot.nations, snapshot.controls, snapshot.territories_by_code)
    return IncomePreview(
        round=game.current_round,
        already_applied=await is_income_applied(db, game_id, game.current_round),
        breakdowns=breakdowns,
        projected=project_balances(snapshot.nations, breakdowns),
    )


@dataclass
class IncomeApplication:
    round: int
    already_applied: bool
    breakdowns: list[NationIncomeBreakdown]


def _applied_from_log(entry: GameLog, round_number: int) -> IncomeApplication:
    payload = entry.payload or {}
    return IncomeApplication(
        round=round_number,
        already_applied=True,
        breakdowns=[NationIncomeBreakdown.from_dict(b) for b in payload.get("breakdowns", [])],
    )


async def apply_income(db: AsyncSession, game_id: int, round_number: int) -> IncomeApplication:
    """Credit one round of income to every nation of the game, exactly once.

    Runs as one transaction under an exclusive lock on the game row: the
    ECONOMY_APPLIED check, the additive balance updates and the log entry
    either all commit or none do. A repeated call for an applied round
    returns the recorded breakdown with ``already_applied`` set. Store
    failures surface as IncomeApplicationError carrying the underlying cause.
    """
    try:
        game = await lock_game(db, game_id)
        applied = await get_income_log(db, game_id, round_number)
        if applied is not None:
            await db.commit()
            return _applied_from_log(applied, round_number)

        if game.status != GameStatus.ACTIVE:
            raise NotActive("Game is not active")
        if round_number != game.current_round:
            raise InvalidPhase(
                f"Income can only be applied for the current round ({game.current_round}), "
                f"not round {round_number}"
            )

        snapshot = await fetch_economy_snapshot(db, game_id)
        breakdowns = compute_income(
            snapshot.nations, snapshot.controls, snapshot.territories_by_code
        )
        for breakdown in breakdowns:
            totals = breakdown.totals
            result = await db.execute(
                update(Nation)
                .where(Nation.id == breakdown.nation_id, Nation.game_id == game_id)
                .values(
                    oil=Nation.oil + totals.oil,
                    iron=Nation.iron + totals.iron,
                    osr=Nation.osr + totals.osr,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise IncomeApplicationError(
                    f"Unable to apply income for round {round_number}: the balance update for "
                    f"{breakdown.nation_key} changed {result.rowcount} rows instead of 1. "
                    "Check that the database role may update the nations table."
                )

        db.add(
            GameLog(
                game_id=game_id,
                round=round_number,
                event_type=GameEventType.ECONOMY_APPLIED,
                payload={
                    "round": round_number,
                    "breakdowns": [asdict(b) for b in breakdowns],
                },
                idempotency_key=economy_applied_key(game_id, round_number),
            )
        )
        await db.flush()
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        # Lost a race against a concurrent apply of the same round
        applied = await get_income_log(db, game_id, round_number)
        if applied is not None:
            return _applied_from_log(applied, round_number)
        raise IncomeApplicationError(
            f"Unable to apply income for round {round_number}: {exc.orig}"
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Income application failed for game %s round %s", game_id, round_number)
        raise IncomeApplicationError(
            f"Unable to apply income for round {round_number}: the store rejected the "
            f"update, no nation was credited. Underlying error: {exc}"
        ) from exc
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Game %s: income applied for round %d to %d nations",
        game_id,
        round_number,
        len(breakdowns),
    )
    await notify_change(
        game_id,
        ChangeKind.NATION_BALANCE,
        round=round_number,
        nations=[b.nation_key for b in breakdowns],
    )
    return IncomeApplication(round=round_number, already_applied=False, breakdowns=breakdowns)
