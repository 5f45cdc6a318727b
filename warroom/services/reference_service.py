"""Loading of static territory data and scenario starting control."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.data.territories import STARTING_CONTROL, TERRITORY_DATA, get_starting_control
from warroom.models.game import Game
from warroom.models.territory import ControlStatus, StartingControl, Territory, TerritoryControl
from warroom.services.nation_service import get_nations_for_game, normalize_nation_key

logger = logging.getLogger(__name__)


async def ensure_reference_data(db: AsyncSession) -> None:
    """Insert the built-in territories and starting control if the tables are empty."""
    count = await db.scalar(select(func.count()).select_from(Territory))
    if count:
        return

    db.add_all(
        Territory(
            code=t.code,
            name=t.name,
            oil=t.active.oil,
            iron=t.active.iron,
            osr=t.active.osr,
            embattled_oil=t.embattled.oil,
            embattled_iron=t.embattled.iron,
            embattled_osr=t.embattled.osr,
        )
        for t in TERRITORY_DATA
    )
    await db.flush()
    for scenario in STARTING_CONTROL:
        db.add_all(
            StartingControl(scenario=scenario, territory_code=code, controller_nation_key=key)
            for code, key in get_starting_control(scenario).items()
        )
    await db.flush()
    logger.info("Loaded %d reference territories", len(TERRITORY_DATA))


async def seed_starting_control(db: AsyncSession, game: Game) -> int:
    """Copy the scenario's starting control into the game's control rows.

    The scenario is matched exactly. Games that already have control rows are
    left alone. Returns the number of rows created.
    """
    existing = await db.scalar(
        select(func.count())
        .select_from(TerritoryControl)
        .where(TerritoryControl.game_id == game.id)
    )
    if existing:
        return 0

    result = await db.execute(
        select(StartingControl).where(StartingControl.scenario == game.scenario)
    )
    starting = list(result.scalars().all())
    if not starting:
        logger.warning("No starting control for scenario '%s' (game %s)", game.scenario, game.id)
        return 0

    nation_ids = {n.nation_key: n.id for n in await get_nations_for_game(db, game.id)}
    created = 0
    for row in starting:
        nation_id = nation_ids.get(normalize_nation_key(row.controller_nation_key))
        if nation_id is None:
            logger.warning(
                "Starting controller '%s' of %s is not in game %s",
                row.controller_nation_key,
                row.territory_code,
                game.id,
            )
            continue
        db.add(
            TerritoryControl(
                game_id=game.id,
                territory_code=row.territory_code,
                nation_id=nation_id,
                status=ControlStatus.ACTIVE.value,
            )
        )
        created += 1
    await db.flush()
    return created
