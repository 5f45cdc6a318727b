import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.config import settings
from warroom.database import get_db
from warroom.dependencies import get_current_user_id
from warroom.errors import GameRuleError, IncomeApplicationError
from warroom.models.game import GamePhase
from warroom.routers.common import get_game_or_404, get_player_or_403, http_error
from warroom.schemas.economy import IncomeApplicationResponse
from warroom.schemas.phase import (
    AdvanceResponse,
    PhaseCommitRequest,
    PhaseCommitResponse,
    PhaseStatusResponse,
)
from warroom.services.commit_service import commit_phase, get_phase_status, uncommit_phase
from warroom.services.game_service import player_controls_nation
from warroom.services.income_service import apply_income
from warroom.services.nation_service import get_nation_by_key
from warroom.services.phase_service import advance_phase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["phases"])


async def _require_controller(db: AsyncSession, game_id: int, current_user_id: str, nation_key: str):
    player = await get_player_or_403(db, game_id, current_user_id)
    try:
        nation = await get_nation_by_key(db, game_id, nation_key)
    except GameRuleError as e:
        raise http_error(e)
    if not await player_controls_nation(db, game_id, player.id, nation.nation_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You do not control {nation.nation_key}",
        )
    return player


@router.post("/{game_id}/phase/commit", response_model=PhaseCommitResponse)
async def commit_current_phase(
    game_id: int,
    body: PhaseCommitRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await get_game_or_404(db, game_id)
    player = await _require_controller(db, game_id, current_user_id, body.nation_key)
    try:
        result = await commit_phase(
            db,
            game_id,
            body.nation_key,
            body.round,
            body.phase,
            committed_by_player_id=player.id,
        )
    except GameRuleError as e:
        raise http_error(e)
    return PhaseCommitResponse.model_validate(result)


@router.post("/{game_id}/phase/uncommit", response_model=PhaseCommitResponse)
async def uncommit_current_phase(
    game_id: int,
    body: PhaseCommitRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await get_game_or_404(db, game_id)
    await _require_controller(db, game_id, current_user_id, body.nation_key)
    try:
        result = await uncommit_phase(db, game_id, body.nation_key, body.round, body.phase)
    except GameRuleError as e:
        raise http_error(e)
    return PhaseCommitResponse.model_validate(result)


@router.get("/{game_id}/phase/status", response_model=PhaseStatusResponse)
async def get_current_phase_status(
    game_id: int,
    round: Optional[int] = None,
    phase: Optional[GamePhase] = None,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    """Readiness of every nation; defaults to the game's current round and phase."""
    game = await get_game_or_404(db, game_id)
    round_number = round if round is not None else game.current_round
    phase = phase if phase is not None else game.current_phase
    nations = await get_phase_status(db, game_id, round_number, phase)
    return PhaseStatusResponse(round=round_number, phase=phase, nations=nations)


@router.post("/{game_id}/phase/advance", response_model=AdvanceResponse)
async def advance_game_phase(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    """Advance to the next phase once every nation has committed. Only the host can call this.

    Leaving ECONOMY credits that round's income unless auto-apply is disabled.
    """
    await get_game_or_404(db, game_id)
    player = await get_player_or_403(db, game_id, current_user_id)
    try:
        result = await advance_phase(db, game_id, requested_by_host=player.is_host)
    except GameRuleError as e:
        raise http_error(e)

    response = AdvanceResponse(
        from_round=result.from_round,
        from_phase=result.from_phase,
        current_round=result.round,
        current_phase=result.phase,
    )
    if result.income_window_opened and settings.auto_apply_income:
        try:
            income = await apply_income(db, game_id, result.from_round)
        except (GameRuleError, IncomeApplicationError) as e:
            # The advance itself is committed; the host can retry the apply
            logger.error("Game %s advanced but income was not applied: %s", game_id, e)
            response.income_error = str(e)
        else:
            response.income = IncomeApplicationResponse.model_validate(income)
    return response
