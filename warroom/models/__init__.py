from warroom.models.base import Base  # noqa: F401
from warroom.models.game import Game, GamePhase, GameStatus  # noqa: F401
from warroom.models.game_log import GameEventType, GameLog  # noqa: F401
from warroom.models.nation import Nation  # noqa: F401
from warroom.models.nation_phase_state import NationPhaseState, NationPhaseStatus  # noqa: F401
from warroom.models.player import Player, PlayerNation  # noqa: F401
from warroom.models.territory import (  # noqa: F401
    ControlStatus,
    StartingControl,
    Territory,
    TerritoryControl,
)
