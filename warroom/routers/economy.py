from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.database import get_db
from warroom.dependencies import get_current_user_id
from warroom.errors import GameRuleError, IncomeApplicationError
from warroom.routers.common import get_game_or_404, get_player_or_403, http_error
from warroom.schemas.economy import (
    ApplyIncomeRequest,
    EconomySnapshotResponse,
    IncomeApplicationResponse,
    IncomePreviewResponse,
    TerritoryControlResponse,
)
from warroom.services.income_service import apply_income, fetch_economy_snapshot, preview_income

router = APIRouter(prefix="/games", tags=["economy"])


@router.get("/{game_id}/economy/snapshot", response_model=EconomySnapshotResponse)
async def get_economy_snapshot(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await get_game_or_404(db, game_id)
    snapshot = await fetch_economy_snapshot(db, game_id)
    missing = sorted(
        {c.territory_code for c in snapshot.controls} - set(snapshot.territories_by_code)
    )
    return EconomySnapshotResponse(
        controls=[TerritoryControlResponse.model_validate(c) for c in snapshot.controls],
        missing_territories=missing,
    )


@router.get("/{game_id}/economy/preview", response_model=IncomePreviewResponse)
async def get_income_preview(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    """Income every nation would receive for the current round. Read-only."""
    await get_game_or_404(db, game_id)
    try:
        preview = await preview_income(db, game_id)
    except GameRuleError as e:
        raise http_error(e)
    return IncomePreviewResponse.model_validate(preview)


@router.post("/{game_id}/economy/apply", response_model=IncomeApplicationResponse)
async def apply_round_income(
    game_id: int,
    body: ApplyIncomeRequest,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    """Credit a round's income to all nations. Only the host can call this; repeats are no-ops."""
    await get_game_or_404(db, game_id)
    player = await get_player_or_403(db, game_id, current_user_id)
    if not player.is_host:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Only the host can apply income"
        )
    try:
        result = await apply_income(db, game_id, body.round)
    except GameRuleError as e:
        raise http_error(e)
    except IncomeApplicationError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return IncomeApplicationResponse.model_validate(result)
