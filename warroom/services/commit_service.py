"""Commit protocol for per-nation phase readiness.

A nation marks the current (round, phase) COMMITTED when its player is done
acting and may take that back (DRAFT) until the host advances, at which point
the row becomes LOCKED for good. Every write re-reads the game row under a
shared lock in the same transaction, so a commit can never land in a phase
the game has already left.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.errors import AlreadyLocked, InvalidPhase, NotActive, NotFound
from warroom.models.game import Game, GamePhase, GameStatus
from warroom.models.nation_phase_state import NationPhaseState, NationPhaseStatus
from warroom.services.game_service import get_game, lock_game
from warroom.services.nation_service import get_nation_by_key, get_nations_for_game
from warroom.services.notification_service import ChangeKind, notify_change

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    nation_key: str
    round: int
    phase: GamePhase
    status: NationPhaseStatus
    # False when the nation was already in the requested status
    changed: bool


def coerce_phase(phase: GamePhase | str) -> GamePhase:
    try:
        return GamePhase(phase)
    except ValueError:
        raise InvalidPhase(f"Unknown phase '{phase}'") from None


def check_current_phase(game: Game, round_number: int, phase: GamePhase) -> None:
    """Raise unless the game is ACTIVE and sitting at exactly (round_number, phase)."""
    if game.status != GameStatus.ACTIVE:
        raise NotActive("Game is not active")
    if game.current_round != round_number or game.current_phase != phase:
        raise InvalidPhase(
            f"Game is at round {game.current_round} {game.current_phase.value}, "
            f"not round {round_number} {phase.value}"
        )


async def get_nation_phase_status(
    db: AsyncSession, game_id: int, nation_id: int, round_number: int, phase: GamePhase
) -> NationPhaseStatus:
    """Status of one nation for a (round, phase); no row means DRAFT."""
    status = await db.scalar(
        select(NationPhaseState.status).where(
            NationPhaseState.game_id == game_id,
            NationPhaseState.nation_id == nation_id,
            NationPhaseState.round == round_number,
            NationPhaseState.phase == phase,
        )
    )
    return status if status is not None else NationPhaseStatus.DRAFT


async def get_phase_status(
    db: AsyncSession, game_id: int, round_number: int, phase: GamePhase | str
) -> dict[str, NationPhaseStatus]:
    """Map every nation of the game to its status for (round, phase)."""
    phase = coerce_phase(phase)
    if await get_game(db, game_id) is None:
        raise NotFound("Game not found")

    result = await db.execute(
        select(NationPhaseState.nation_id, NationPhaseState.status).where(
            NationPhaseState.game_id == game_id,
            NationPhaseState.round == round_number,
            NationPhaseState.phase == phase,
        )
    )
    status_by_nation_id = dict(result.all())
    return {
        nation.nation_key: status_by_nation_id.get(nation.id, NationPhaseStatus.DRAFT)
        for nation in await get_nations_for_game(db, game_id)
    }


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Unsupported database dialect for phase-state upsert: {dialect}")


async def _upsert_status(
    db: AsyncSession,
    game_id: int,
    nation_id: int,
    round_number: int,
    phase: GamePhase,
    status: NationPhaseStatus,
    committed_by_player_id: int | None,
) -> None:
    now = datetime.now(timezone.utc)
    committed = status == NationPhaseStatus.COMMITTED
    insert = _insert_for(db)
    stmt = insert(NationPhaseState).values(
        game_id=game_id,
        nation_id=nation_id,
        round=round_number,
        phase=phase,
        status=status,
        committed_at=now if committed else None,
        committed_by_player_id=committed_by_player_id if committed else None,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["game_id", "nation_id", "round", "phase"],
        set_={
            "status": stmt.excluded.status,
            "committed_at": stmt.excluded.committed_at,
            "committed_by_player_id": stmt.excluded.committed_by_player_id,
            "updated_at": stmt.excluded.updated_at,
        },
        # A locked row is never rewritten, whatever the caller checked before
        where=NationPhaseState.status != NationPhaseStatus.LOCKED,
    )
    await db.execute(stmt)


async def _set_nation_phase_status(
    db: AsyncSession,
    game_id: int,
    nation_key: str,
    round_number: int,
    phase: GamePhase | str,
    target: NationPhaseStatus,
    committed_by_player_id: int | None,
) -> CommitResult:
    phase = coerce_phase(phase)
    try:
        game = await lock_game(db, game_id, shared=True)
        check_current_phase(game, round_number, phase)
        nation = await get_nation_by_key(db, game_id, nation_key)

        current = await get_nation_phase_status(db, game_id, nation.id, round_number, phase)
        if current == target:
            await db.commit()
            return CommitResult(nation.nation_key, round_number, phase, current, changed=False)
        if not current.can_transition_to(target):
            raise AlreadyLocked(
                f"{nation.nation_key} is locked for round {round_number} {phase.value}"
            )

        await _upsert_status(
            db, game_id, nation.id, round_number, phase, target, committed_by_player_id
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Game %s: %s %s round %d %s",
        game_id,
        nation.nation_key,
        target.value,
        round_number,
        phase.value,
    )
    await notify_change(
        game_id,
        ChangeKind.PHASE_STATE,
        nation_key=nation.nation_key,
        round=round_number,
        phase=phase.value,
        status=target.value,
    )
    return CommitResult(nation.nation_key, round_number, phase, target, changed=True)


async def commit_phase(
    db: AsyncSession,
    game_id: int,
    nation_key: str,
    round_number: int,
    phase: GamePhase | str,
    committed_by_player_id: int | None = None,
) -> CommitResult:
    """Mark a nation done with the current phase.

    Raises InvalidPhase when (round_number, phase) is not the game's current
    phase, AlreadyLocked when the phase was already closed for the nation.
    """
    return await _set_nation_phase_status(
        db,
        game_id,
        nation_key,
        round_number,
        phase,
        NationPhaseStatus.COMMITTED,
        committed_by_player_id,
    )


async def uncommit_phase(
    db: AsyncSession,
    game_id: int,
    nation_key: str,
    round_number: int,
    phase: GamePhase | str,
) -> CommitResult:
    """Return a nation to DRAFT for the current phase; same preconditions as commit_phase."""
    return await _set_nation_phase_status(
        db,
        game_id,
        nation_key,
        round_number,
        phase,
        NationPhaseStatus.DRAFT,
        None,
    )
