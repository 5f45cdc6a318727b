import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.errors import GameRuleError, NotActive, NotFound, NotHost
from warroom.models.game import Game, GamePhase, GameStatus
from warroom.models.game_log import GameEventType, GameLog
from warroom.models.player import Player, PlayerNation
from warroom.services.nation_service import (
    get_nation_by_key,
    normalize_nation_key,
    seed_nations_for_scenario,
)
from warroom.services.notification_service import ChangeKind, notify_change
from warroom.services.reference_service import ensure_reference_data, seed_starting_control

logger = logging.getLogger(__name__)


async def get_game(db: AsyncSession, game_id: int) -> Game | None:
    result = await db.execute(select(Game).where(Game.id == game_id))
    return result.scalar_one_or_none()


async def lock_game(db: AsyncSession, game_id: int, shared: bool = False) -> Game:
    """Re-read the game row from the store and lock it for this transaction.

    Advancing and income application take the exclusive lock; commits take a
    shared one so that commits for different nations do not wait on each
    other but can never interleave with an advance.
    """
    result = await db.execute(
        select(Game)
        .where(Game.id == game_id)
        .with_for_update(read=shared)
        .execution_options(populate_existing=True)
    )
    game = result.scalar_one_or_none()
    if game is None:
        raise NotFound("Game not found")
    return game


async def get_players_for_game(db: AsyncSession, game_id: int) -> list[Player]:
    result = await db.execute(
        select(Player).where(Player.game_id == game_id).order_by(Player.id)
    )
    return list(result.scalars().all())


async def get_player_in_game(db: AsyncSession, game_id: int, user_id: str) -> Player | None:
    result = await db.execute(
        select(Player).where(Player.game_id == game_id, Player.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_game(
    db: AsyncSession,
    name: str,
    scenario: str,
    max_players: int,
    host_user_id: str,
    display_name: str,
) -> Game:
    """Create a lobby game, its host seat and the scenario's nations."""
    game = Game(
        name=name.strip(),
        scenario=scenario,
        status=GameStatus.LOBBY,
        current_round=1,
        current_phase=GamePhase.ECONOMY,
        max_players=max_players,
    )
    db.add(game)
    await db.flush()

    db.add(
        Player(
            game_id=game.id,
            user_id=host_user_id,
            display_name=display_name.strip(),
            is_host=True,
        )
    )
    await seed_nations_for_scenario(db, game.id, scenario)
    await db.commit()
    await db.refresh(game)
    return game


async def join_game(db: AsyncSession, game: Game, user_id: str, display_name: str) -> Player:
    """Join a lobby game. Joining twice just updates the display name."""
    existing = await get_player_in_game(db, game.id, user_id)
    if existing is not None:
        existing.display_name = display_name.strip()
        await db.commit()
        return existing

    if game.status != GameStatus.LOBBY:
        raise GameRuleError("Game is not in lobby")
    players = await get_players_for_game(db, game.id)
    if len(players) >= game.max_players:
        raise GameRuleError("Game is full")

    player = Player(
        game_id=game.id,
        user_id=user_id,
        display_name=display_name.strip(),
        is_host=False,
    )
    db.add(player)
    await db.commit()
    await db.refresh(player)
    await notify_change(game.id, ChangeKind.GAME, joined_player_id=player.id)
    return player


async def get_nations_by_player(db: AsyncSession, game_id: int) -> dict[int, list[str]]:
    result = await db.execute(
        select(PlayerNation).where(PlayerNation.game_id == game_id).order_by(PlayerNation.id)
    )
    nations_by_player: dict[int, list[str]] = {}
    for row in result.scalars().all():
        nations_by_player.setdefault(row.player_id, []).append(row.nation_key)
    return nations_by_player


async def player_controls_nation(
    db: AsyncSession, game_id: int, player_id: int, nation_key: str
) -> bool:
    result = await db.execute(
        select(PlayerNation).where(
            PlayerNation.game_id == game_id,
            PlayerNation.player_id == player_id,
            PlayerNation.nation_key == normalize_nation_key(nation_key),
        )
    )
    return result.scalar_one_or_none() is not None


async def assign_nation(
    db: AsyncSession, game: Game, player: Player, nation_key: str
) -> PlayerNation:
    """Give a nation to a player. Each nation has at most one controller."""
    nation = await get_nation_by_key(db, game.id, nation_key)
    result = await db.execute(
        select(PlayerNation).where(
            PlayerNation.game_id == game.id,
            PlayerNation.nation_key == nation.nation_key,
        )
    )
    current = result.scalar_one_or_none()
    if current is not None:
        if current.player_id == player.id:
            return current
        raise GameRuleError(f"{nation.nation_key} is already assigned to another player")

    assignment = PlayerNation(game_id=game.id, player_id=player.id, nation_key=nation.nation_key)
    db.add(assignment)
    if player.current_nation is None:
        player.current_nation = nation.nation_key
    await db.commit()
    await db.refresh(assignment)
    await notify_change(game.id, ChangeKind.GAME, assigned_nation=nation.nation_key)
    return assignment


async def set_current_nation(db: AsyncSession, game: Game, player: Player, nation_key: str) -> Player:
    """Pick which of the player's nations they are acting as."""
    key = normalize_nation_key(nation_key)
    if not await player_controls_nation(db, game.id, player.id, key):
        raise GameRuleError(f"You do not control {key}")
    player.current_nation = key
    await db.commit()
    return player


async def start_game(db: AsyncSession, game_id: int, requested_by_host: bool) -> Game:
    """Move a lobby game to round 1, ECONOMY and seed its starting control."""
    if not requested_by_host:
        raise NotHost("Only the host can start the game")

    try:
        game = await lock_game(db, game_id)
        if game.status != GameStatus.LOBBY:
            raise NotActive("Game is already started")

        game.status = GameStatus.ACTIVE
        game.current_round = 1
        game.current_phase = GamePhase.ECONOMY
        game.started_at = datetime.now(timezone.utc)

        await ensure_reference_data(db)
        seeded = await seed_starting_control(db, game)
        db.add(
            GameLog(
                game_id=game.id,
                round=1,
                event_type=GameEventType.GAME_STARTED,
                payload={"scenario": game.scenario, "territories_seeded": seeded},
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Game %s started (scenario '%s', %d territories)", game.id, game.scenario, seeded)
    await notify_change(
        game.id,
        ChangeKind.GAME,
        status=game.status.value,
        round=game.current_round,
        phase=game.current_phase.value,
    )
    return game
