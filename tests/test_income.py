"""Tests for the income engine: pure computation, preview and exactly-once application."""

from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.errors import IncomeApplicationError, InvalidPhase, NotActive, NotFound
from warroom.models.game import Game, GamePhase, GameStatus
from warroom.models.game_log import GameEventType, GameLog
from warroom.models.nation import Nation
from warroom.models.territory import Territory, TerritoryControl
from warroom.services import income_service
from warroom.services.income_service import (
    IncomeOverride,
    IncomeTotals,
    NationIncomeBreakdown,
    apply_income,
    compute_income,
    preview_income,
    project_balances,
)
from warroom.services.nation_service import get_nations_for_game


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _territory(code: str, name: str, active=(0, 0, 0), embattled=(0, 0, 0)) -> Territory:
    return Territory(
        code=code,
        name=name,
        oil=active[0],
        iron=active[1],
        osr=active[2],
        embattled_oil=embattled[0],
        embattled_iron=embattled[1],
        embattled_osr=embattled[2],
    )


def _nation(nation_id: int, key: str, oil=0, iron=0, osr=0) -> Nation:
    return Nation(id=nation_id, game_id=1, nation_key=key, oil=oil, iron=iron, osr=osr)


def _control(code: str, nation_id: int | None, status: str = "ACTIVE") -> TerritoryControl:
    return TerritoryControl(game_id=1, territory_code=code, nation_id=nation_id, status=status)


TERRITORY_ROWS = [
    ("T1", "Alpha", (1, 2, 0), (0, 1, 0)),
    ("T2", "Bravo", (3, 1, 2), (1, 0, 1)),
    ("T3", "Charlie", (2, 0, 1), (1, 0, 0)),
]
TERRITORIES = {row[0]: _territory(*row) for row in TERRITORY_ROWS}


async def _make_economy_game(
    db: AsyncSession,
    status: GameStatus = GameStatus.ACTIVE,
    round_num: int = 1,
) -> tuple[Game, Nation, Nation]:
    """Active game with GERMANY holding T1 (active) and T2 (embattled), CHINA holding T3."""
    game = Game(
        name="Income Test",
        scenario="Global War",
        status=status,
        current_round=round_num,
        current_phase=GamePhase.ECONOMY,
        max_players=7,
    )
    db.add(game)
    db.add_all([_territory(*row) for row in TERRITORY_ROWS])
    await db.flush()

    germany = Nation(game_id=game.id, nation_key="GERMANY", oil=5, iron=5, osr=5)
    china = Nation(game_id=game.id, nation_key="CHINA")
    db.add_all([germany, china])
    await db.flush()

    db.add_all([
        TerritoryControl(game_id=game.id, territory_code="T1", nation_id=germany.id, status="ACTIVE"),
        TerritoryControl(game_id=game.id, territory_code="T2", nation_id=germany.id, status="EMBATTLED"),
        TerritoryControl(game_id=game.id, territory_code="T3", nation_id=china.id, status="ACTIVE"),
    ])
    await db.commit()
    return game, germany, china


async def _balances(db: AsyncSession, game_id: int) -> dict[str, tuple[int, int, int]]:
    return {n.nation_key: (n.oil, n.iron, n.osr) for n in await get_nations_for_game(db, game_id)}


async def _income_logs(db: AsyncSession, game_id: int) -> list[GameLog]:
    result = await db.execute(
        select(GameLog).where(
            GameLog.game_id == game_id,
            GameLog.event_type == GameEventType.ECONOMY_APPLIED,
        )
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Pure computation
# ---------------------------------------------------------------------------


class TestComputeIncome:
    def test_active_and_embattled_sides(self):
        nations = [_nation(1, "GERMANY")]
        controls = [_control("T1", 1, "ACTIVE"), _control("T2", 1, "EMBATTLED")]

        [breakdown] = compute_income(nations, controls, TERRITORIES)
        assert breakdown.totals == IncomeTotals(2, 2, 1)
        by_code = {line.territory_code: line for line in breakdown.lines}
        assert by_code["T1"].used_embattled_side is False
        assert by_code["T2"].used_embattled_side is True
        assert (by_code["T2"].oil, by_code["T2"].iron, by_code["T2"].osr) == (1, 0, 1)

    def test_status_match_is_case_insensitive(self):
        nations = [_nation(1, "GERMANY")]
        [breakdown] = compute_income(nations, [_control("T2", 1, " embattled ")], TERRITORIES)
        assert breakdown.totals == IncomeTotals(1, 0, 1)

    def test_unknown_status_uses_active_side(self):
        nations = [_nation(1, "GERMANY")]
        [breakdown] = compute_income(nations, [_control("T2", 1, "CONTESTED")], TERRITORIES)
        assert breakdown.totals == IncomeTotals(3, 1, 2)

    def test_nation_without_territories_gets_zero(self):
        nations = [_nation(1, "GERMANY"), _nation(2, "ITALY")]
        breakdowns = compute_income(nations, [_control("T1", 1)], TERRITORIES)
        assert [b.nation_key for b in breakdowns] == ["GERMANY", "ITALY"]
        assert breakdowns[1].totals == IncomeTotals()
        assert breakdowns[1].lines == []

    def test_uncontrolled_rows_are_ignored(self):
        nations = [_nation(1, "GERMANY")]
        [breakdown] = compute_income(nations, [_control("T1", None)], TERRITORIES)
        assert breakdown.totals == IncomeTotals()

    def test_lines_sorted_by_name_then_code(self):
        territories = {
            "Z9": _territory("Z9", "Alpha", active=(1, 0, 0)),
            "A1": _territory("A1", "Alpha", active=(1, 0, 0)),
            "B1": _territory("B1", "Able", active=(1, 0, 0)),
        }
        nations = [_nation(1, "GERMANY")]
        controls = [_control("Z9", 1), _control("A1", 1), _control("B1", 1)]
        [breakdown] = compute_income(nations, controls, territories)
        assert [line.territory_code for line in breakdown.lines] == ["B1", "A1", "Z9"]

    def test_missing_territory_is_skipped_with_warning(self):
        nations = [_nation(1, "GERMANY")]
        controls = [_control("T1", 1), _control("XXX", 1)]
        [breakdown] = compute_income(nations, controls, TERRITORIES)
        assert breakdown.totals == IncomeTotals(1, 2, 0)
        assert breakdown.warnings == ["No yield data for territory XXX; skipped"]

    def test_china_gains_no_oil(self):
        nations = [_nation(1, "CHINA")]
        controls = [_control("T1", 1), _control("T2", 1, "EMBATTLED")]
        [breakdown] = compute_income(nations, controls, TERRITORIES)
        assert breakdown.totals == IncomeTotals(0, 2, 1)
        assert all(line.oil == 0 for line in breakdown.lines)
        assert breakdown.overrides == ["China cannot gain or spend Oil."]

    def test_custom_overrides_replace_builtin_rules(self):
        nations = [_nation(1, "CHINA"), _nation(2, "ITALY")]
        controls = [_control("T3", 1), _control("T2", 2)]
        rules = [IncomeOverride(nation_key="italy", zeroed=("osr",), reason="Blockade")]

        china, italy = compute_income(nations, controls, TERRITORIES, overrides=rules)
        assert china.totals == IncomeTotals(2, 0, 1)
        assert italy.totals == IncomeTotals(3, 1, 0)
        assert italy.overrides == ["Blockade"]

    def test_no_overrides(self):
        nations = [_nation(1, "CHINA")]
        [breakdown] = compute_income(nations, [_control("T3", 1)], TERRITORIES, overrides=[])
        assert breakdown.totals == IncomeTotals(2, 0, 1)

    def test_project_balances(self):
        nations = [_nation(1, "GERMANY", oil=4, iron=1, osr=0), _nation(2, "ITALY", oil=1)]
        breakdowns = [NationIncomeBreakdown(nation_id=1, nation_key="GERMANY", totals=IncomeTotals(2, 2, 1))]
        assert project_balances(nations, breakdowns) == {
            "GERMANY": IncomeTotals(6, 3, 1),
            "ITALY": IncomeTotals(1, 0, 0),
        }


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


class TestPreviewIncome:
    async def test_preview_does_not_write(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)

        preview = await preview_income(db_session, game.id)
        assert preview.round == 1
        assert preview.already_applied is False
        assert preview.projected["GERMANY"] == IncomeTotals(7, 7, 6)
        assert preview.projected["CHINA"] == IncomeTotals(0, 0, 1)

        assert await _balances(db_session, game.id) == {
            "GERMANY": (5, 5, 5),
            "CHINA": (0, 0, 0),
        }
        assert await _income_logs(db_session, game.id) == []

    async def test_preview_unknown_game(self, db_session: AsyncSession):
        with pytest.raises(NotFound):
            await preview_income(db_session, 999)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


class TestApplyIncome:
    async def test_apply_credits_every_nation(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)

        result = await apply_income(db_session, game.id, 1)
        assert result.already_applied is False
        assert {b.nation_key: b.totals for b in result.breakdowns} == {
            "GERMANY": IncomeTotals(2, 2, 1),
            "CHINA": IncomeTotals(0, 0, 1),
        }
        assert await _balances(db_session, game.id) == {
            "GERMANY": (7, 7, 6),
            "CHINA": (0, 0, 1),
        }

        [entry] = await _income_logs(db_session, game.id)
        assert entry.round == 1
        assert entry.idempotency_key == f"{game.id}:ECONOMY_APPLIED:1"

    async def test_second_apply_is_a_noop(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)
        await apply_income(db_session, game.id, 1)

        again = await apply_income(db_session, game.id, 1)
        assert again.already_applied is True
        assert {b.nation_key: b.totals for b in again.breakdowns}["GERMANY"] == IncomeTotals(2, 2, 1)
        assert await _balances(db_session, game.id) == {
            "GERMANY": (7, 7, 6),
            "CHINA": (0, 0, 1),
        }
        assert len(await _income_logs(db_session, game.id)) == 1

    async def test_preview_reports_applied_round(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)
        await apply_income(db_session, game.id, 1)
        preview = await preview_income(db_session, game.id)
        assert preview.already_applied is True

    async def test_applied_round_stays_applied_after_game_moves_on(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)
        await apply_income(db_session, game.id, 1)

        game.current_round = 2
        await db_session.commit()

        again = await apply_income(db_session, game.id, 1)
        assert again.already_applied is True

    async def test_non_current_round_is_rejected(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session, round_num=2)
        game_id = game.id
        with pytest.raises(InvalidPhase):
            await apply_income(db_session, game_id, 1)
        with pytest.raises(InvalidPhase):
            await apply_income(db_session, game_id, 3)
        assert await _income_logs(db_session, game_id) == []

    async def test_inactive_game_is_rejected(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session, status=GameStatus.LOBBY)
        with pytest.raises(NotActive):
            await apply_income(db_session, game.id, 1)

    async def test_unknown_game(self, db_session: AsyncSession):
        with pytest.raises(NotFound):
            await apply_income(db_session, 999, 1)

    async def test_failed_update_credits_nobody(self, db_session: AsyncSession):
        game, germany, _ = await _make_economy_game(db_session)
        game_id, germany_id = game.id, germany.id

        def partly_bogus(nations, controls, territories, overrides=None):
            return [
                NationIncomeBreakdown(nation_id=germany_id, nation_key="GERMANY", totals=IncomeTotals(9, 9, 9)),
                NationIncomeBreakdown(nation_id=424242, nation_key="ATLANTIS", totals=IncomeTotals(1, 1, 1)),
            ]

        with patch.object(income_service, "compute_income", side_effect=partly_bogus):
            with pytest.raises(IncomeApplicationError) as exc_info:
                await apply_income(db_session, game_id, 1)

        assert "ATLANTIS" in str(exc_info.value)
        assert await _balances(db_session, game_id) == {
            "GERMANY": (5, 5, 5),
            "CHINA": (0, 0, 0),
        }
        assert await _income_logs(db_session, game_id) == []

    async def test_store_error_is_wrapped_with_cause(self, db_session: AsyncSession):
        game, _, _ = await _make_economy_game(db_session)
        game_id = game.id
        failure = OperationalError("INSERT INTO game_log", {}, Exception("disk I/O error"))

        with patch.object(db_session, "flush", side_effect=failure):
            with pytest.raises(IncomeApplicationError) as exc_info:
                await apply_income(db_session, game_id, 1)

        assert "disk I/O error" in str(exc_info.value)
        assert exc_info.value.__cause__ is failure
        assert await _balances(db_session, game_id) == {
            "GERMANY": (5, 5, 5),
            "CHINA": (0, 0, 0),
        }
        assert await _income_logs(db_session, game_id) == []

        # The round can still be applied once the store recovers
        result = await apply_income(db_session, game_id, 1)
        assert result.already_applied is False
