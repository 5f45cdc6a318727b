"""Nation registry: key normalization and per-game nation lookups."""

import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.data.scenarios import get_scenario_nations
from warroom.errors import NotFound
from warroom.models.nation import Nation

_WHITESPACE = re.compile(r"\s+")


def normalize_nation_key(raw: str) -> str:
    """Canonical lookup form of a nation key.

    Trims, turns underscores into spaces, collapses runs of whitespace and
    uppercases, so ``"british_commonwealth"`` and ``" British   Commonwealth"``
    both become ``"BRITISH COMMONWEALTH"``.
    """
    return _WHITESPACE.sub(" ", raw.strip().replace("_", " ")).strip().upper()


async def get_nations_for_game(db: AsyncSession, game_id: int) -> list[Nation]:
    # Balances are updated in bulk, so always take them from the store
    result = await db.execute(
        select(Nation)
        .where(Nation.game_id == game_id)
        .order_by(Nation.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def find_nation(db: AsyncSession, game_id: int, nation_key: str) -> Nation | None:
    result = await db.execute(
        select(Nation).where(
            Nation.game_id == game_id,
            Nation.nation_key == normalize_nation_key(nation_key),
        )
    )
    return result.scalar_one_or_none()


async def get_nation_by_key(db: AsyncSession, game_id: int, nation_key: str) -> Nation:
    """Like find_nation, but raise NotFound when the game has no such nation."""
    nation = await find_nation(db, game_id, nation_key)
    if nation is None:
        raise NotFound(f"Nation '{normalize_nation_key(nation_key)}' is not part of this game")
    return nation


async def seed_nations_for_scenario(db: AsyncSession, game_id: int, scenario: str) -> list[Nation]:
    """Create one Nation row per nation in play for the scenario."""
    nations = [
        Nation(game_id=game_id, nation_key=normalize_nation_key(key))
        for key in get_scenario_nations(scenario)
    ]
    db.add_all(nations)
    await db.flush()
    return nations
