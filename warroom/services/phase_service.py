"""Phase advancer: moves an active game through the rulebook phase cycle."""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.config import settings
from warroom.errors import IncomeNotApplied, NotActive, NotAllCommitted, NotHost
from warroom.models.game import GamePhase, GameStatus
from warroom.models.game_log import GameEventType, GameLog
from warroom.models.nation_phase_state import NationPhaseState, NationPhaseStatus
from warroom.services.game_service import lock_game
from warroom.services.income_service import is_income_applied
from warroom.services.nation_service import get_nations_for_game
from warroom.services.notification_service import ChangeKind, notify_change

logger = logging.getLogger(__name__)

PHASE_ORDER: list[GamePhase] = [
    GamePhase.ECONOMY,
    GamePhase.PLANNING,
    GamePhase.MOVEMENT,
    GamePhase.COMBAT,
    GamePhase.REFIT_DEPLOY,
    GamePhase.MORALE,
    GamePhase.PRODUCTION,
]

PHASE_NAMES: dict[GamePhase, str] = {
    GamePhase.ECONOMY: "Direct National Economy",
    GamePhase.PLANNING: "Strategic Planning",
    GamePhase.MOVEMENT: "Movement Operations",
    GamePhase.COMBAT: "Combat Operations",
    GamePhase.REFIT_DEPLOY: "Refit & Deploy",
    GamePhase.MORALE: "Morale",
    GamePhase.PRODUCTION: "Production",
}

# Income is credited once the game has left this phase
INCOME_PHASE = GamePhase.ECONOMY

# Statuses the advance promotes to LOCKED
LOCKABLE_STATUSES = [
    status
    for status in NationPhaseStatus
    if status is not NationPhaseStatus.LOCKED
    and status.can_transition_to(NationPhaseStatus.LOCKED)
]


def next_phase(round_number: int, phase: GamePhase) -> tuple[int, GamePhase]:
    """The (round, phase) after the given one; PRODUCTION wraps to the next round's ECONOMY."""
    idx = PHASE_ORDER.index(phase)
    if idx == len(PHASE_ORDER) - 1:
        return round_number + 1, PHASE_ORDER[0]
    return round_number, PHASE_ORDER[idx + 1]


@dataclass
class AdvanceResult:
    from_round: int
    from_phase: GamePhase
    round: int
    phase: GamePhase
    # True when the phase just left was the income phase
    income_window_opened: bool


async def find_pending_nations(
    db: AsyncSession,
    game_id: int,
    round_number: int,
    phase: GamePhase,
    require_all_nations: bool,
) -> list[str]:
    """Nation keys still in DRAFT for (round_number, phase).

    With require_all_nations every registered nation needs a COMMITTED or
    LOCKED row; otherwise only nations that already have a row are checked.
    """
    result = await db.execute(
        select(NationPhaseState.nation_id, NationPhaseState.status).where(
            NationPhaseState.game_id == game_id,
            NationPhaseState.round == round_number,
            NationPhaseState.phase == phase,
        )
    )
    status_by_nation_id = dict(result.all())

    pending: list[str] = []
    for nation in await get_nations_for_game(db, game_id):
        if nation.id not in status_by_nation_id and not require_all_nations:
            continue
        status = status_by_nation_id.get(nation.id, NationPhaseStatus.DRAFT)
        if status == NationPhaseStatus.DRAFT:
            pending.append(nation.nation_key)
    return pending


async def advance_phase(
    db: AsyncSession,
    game_id: int,
    requested_by_host: bool,
    require_all_nations: bool | None = None,
) -> AdvanceResult:
    """Move the game to its next phase once every nation has committed.

    The outgoing phase's COMMITTED rows become LOCKED in the same transaction
    that moves the game, so no reader sees the new phase next to unlocked
    rows of the old one. Income is not credited here; the result reports
    whether the income phase was just left. A round cannot end (PRODUCTION
    to the next ECONOMY) until its income has been applied.
    """
    if not requested_by_host:
        raise NotHost("Only the host can advance phases")
    if require_all_nations is None:
        require_all_nations = settings.require_all_nations_committed

    try:
        game = await lock_game(db, game_id)
        if game.status != GameStatus.ACTIVE:
            raise NotActive("Game is not active")

        from_round, from_phase = game.current_round, game.current_phase
        pending = await find_pending_nations(
            db, game_id, from_round, from_phase, require_all_nations
        )
        if pending:
            raise NotAllCommitted(pending)

        to_round, to_phase = next_phase(from_round, from_phase)
        if to_round != from_round and not await is_income_applied(db, game_id, from_round):
            raise IncomeNotApplied(
                f"Income for round {from_round} has not been applied; "
                "apply it before the round ends"
            )

        await db.execute(
            update(NationPhaseState)
            .where(
                NationPhaseState.game_id == game_id,
                NationPhaseState.round == from_round,
                NationPhaseState.phase == from_phase,
                NationPhaseState.status.in_(LOCKABLE_STATUSES),
            )
            .values(status=NationPhaseStatus.LOCKED)
            .execution_options(synchronize_session=False)
        )

        game.current_round = to_round
        game.current_phase = to_phase
        db.add(
            GameLog(
                game_id=game_id,
                round=from_round,
                event_type=GameEventType.PHASE_ADVANCED,
                payload={
                    "from_round": from_round,
                    "from_phase": from_phase.value,
                    "to_round": to_round,
                    "to_phase": to_phase.value,
                },
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Game %s advanced: round %d %s -> round %d %s",
        game_id,
        from_round,
        from_phase.value,
        to_round,
        to_phase.value,
    )
    await notify_change(
        game_id,
        ChangeKind.GAME,
        round=to_round,
        phase=to_phase.value,
        from_round=from_round,
        from_phase=from_phase.value,
    )
    await notify_change(
        game_id,
        ChangeKind.PHASE_STATE,
        round=from_round,
        phase=from_phase.value,
        status=NationPhaseStatus.LOCKED.value,
    )
    return AdvanceResult(
        from_round=from_round,
        from_phase=from_phase,
        round=to_round,
        phase=to_phase,
        income_window_opened=from_phase == INCOME_PHASE,
    )
