from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.data.nations import get_nation_data
from warroom.data.scenarios import list_scenarios
from warroom.database import get_db
from warroom.dependencies import get_current_user_id
from warroom.errors import GameRuleError
from warroom.models.game import Game, GameStatus
from warroom.routers.common import get_game_or_404, get_player_or_403, http_error
from warroom.schemas.game import (
    AssignNation,
    GameCreate,
    GameResponse,
    JoinGame,
    NationResponse,
    PhaseInfo,
    PlayerResponse,
    SetCurrentNation,
)
from warroom.services.commit_service import get_phase_status
from warroom.services.game_service import (
    assign_nation,
    create_game,
    get_nations_by_player,
    get_players_for_game,
    join_game,
    set_current_nation,
    start_game,
)
from warroom.services.nation_service import get_nations_for_game
from warroom.services.phase_service import PHASE_NAMES, PHASE_ORDER

router = APIRouter(prefix="/games", tags=["games"])


def _nation_response(nation) -> NationResponse:
    data = get_nation_data(nation.nation_key)
    response = NationResponse.model_validate(nation)
    if data is not None:
        response.name = data.name
        response.alliance = data.alliance
    return response


async def _game_response_for_user(db: AsyncSession, game: Game, current_user_id: str) -> GameResponse:
    players = await get_players_for_game(db, game.id)
    nations_by_player = await get_nations_by_player(db, game.id)
    nations = await get_nations_for_game(db, game.id)
    phase_status = {}
    if game.status == GameStatus.ACTIVE:
        phase_status = await get_phase_status(db, game.id, game.current_round, game.current_phase)
    me = next((p for p in players if p.user_id == current_user_id), None)
    return GameResponse(
        id=game.id,
        name=game.name,
        scenario=game.scenario,
        status=game.status,
        current_round=game.current_round,
        current_phase=game.current_phase,
        max_players=game.max_players,
        created_at=game.created_at,
        started_at=game.started_at,
        players=[
            PlayerResponse(
                id=p.id,
                user_id=p.user_id,
                display_name=p.display_name,
                is_host=p.is_host,
                current_nation=p.current_nation,
                nations=nations_by_player.get(p.id, []),
            )
            for p in players
        ],
        nations=[_nation_response(n) for n in nations],
        phase_status=phase_status,
        is_host=bool(me and me.is_host),
    )


async def _player_response(db: AsyncSession, game_id: int, player) -> PlayerResponse:
    nations_by_player = await get_nations_by_player(db, game_id)
    return PlayerResponse(
        id=player.id,
        user_id=player.user_id,
        display_name=player.display_name,
        is_host=player.is_host,
        current_nation=player.current_nation,
        nations=nations_by_player.get(player.id, []),
    )


@router.get("/phases", response_model=list[PhaseInfo])
async def get_phases():
    return [
        PhaseInfo(code=phase, name=PHASE_NAMES[phase], order=idx + 1)
        for idx, phase in enumerate(PHASE_ORDER)
    ]


@router.get("/scenarios", response_model=list[str])
async def get_scenarios():
    return list_scenarios()


@router.post("", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
async def create_new_game(
    body: GameCreate,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    game = await create_game(
        db,
        name=body.name,
        scenario=body.scenario,
        max_players=body.max_players,
        host_user_id=current_user_id,
        display_name=body.display_name,
    )
    return await _game_response_for_user(db, game, current_user_id)


@router.get("/{game_id}", response_model=GameResponse)
async def get_game_info(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    game = await get_game_or_404(db, game_id)
    return await _game_response_for_user(db, game, current_user_id)


@router.post("/{game_id}/join", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
async def join_game_endpoint(
    game_id: int,
    body: JoinGame,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    game = await get_game_or_404(db, game_id)
    try:
        player = await join_game(db, game=game, user_id=current_user_id, display_name=body.display_name)
    except GameRuleError as e:
        raise http_error(e)
    return await _player_response(db, game_id, player)


@router.post("/{game_id}/nations/assign", response_model=PlayerResponse)
async def assign_nation_endpoint(
    game_id: int,
    body: AssignNation,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    game = await get_game_or_404(db, game_id)
    caller = await get_player_or_403(db, game_id, current_user_id)

    target = caller
    if body.player_id is not None and body.player_id != caller.id:
        if not caller.is_host:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the host can assign nations to other players",
            )
        players = await get_players_for_game(db, game_id)
        target = next((p for p in players if p.id == body.player_id), None)
        if target is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")

    try:
        await assign_nation(db, game=game, player=target, nation_key=body.nation_key)
    except GameRuleError as e:
        raise http_error(e)
    return await _player_response(db, game_id, target)


@router.post("/{game_id}/current-nation", response_model=PlayerResponse)
async def set_current_nation_endpoint(
    game_id: int,
    body: SetCurrentNation,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    game = await get_game_or_404(db, game_id)
    player = await get_player_or_403(db, game_id, current_user_id)
    try:
        player = await set_current_nation(db, game=game, player=player, nation_key=body.nation_key)
    except GameRuleError as e:
        raise http_error(e)
    return await _player_response(db, game_id, player)


@router.post("/{game_id}/start", response_model=GameResponse)
async def start_game_endpoint(
    game_id: int,
    db: AsyncSession = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
):
    await get_game_or_404(db, game_id)
    player = await get_player_or_403(db, game_id, current_user_id)
    try:
        game = await start_game(db, game_id, requested_by_host=player.is_host)
    except GameRuleError as e:
        raise http_error(e)
    return await _game_response_for_user(db, game, current_user_id)
