from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.errors import (
    AlreadyLocked,
    GameRuleError,
    IncomeNotApplied,
    InvalidPhase,
    NotActive,
    NotAllCommitted,
    NotFound,
    NotHost,
)
from warroom.models.game import Game
from warroom.models.player import Player
from warroom.services.game_service import get_game, get_player_in_game

_STATUS_BY_ERROR: list[tuple[type[GameRuleError], int]] = [
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NotHost, status.HTTP_403_FORBIDDEN),
    (NotActive, status.HTTP_409_CONFLICT),
    (InvalidPhase, status.HTTP_409_CONFLICT),
    (AlreadyLocked, status.HTTP_409_CONFLICT),
    (NotAllCommitted, status.HTTP_409_CONFLICT),
    (IncomeNotApplied, status.HTTP_409_CONFLICT),
]


def http_error(exc: GameRuleError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def get_game_or_404(db: AsyncSession, game_id: int) -> Game:
    game = await get_game(db, game_id)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


async def get_player_or_403(db: AsyncSession, game_id: int, user_id: str) -> Player:
    player = await get_player_in_game(db, game_id, user_id)
    if player is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="You are not a player in this game"
        )
    return player
