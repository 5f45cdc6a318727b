from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from warroom.config import settings
from warroom.models.game import GamePhase, GameStatus
from warroom.models.nation_phase_state import NationPhaseStatus


class GameCreate(BaseModel):
    name: str
    scenario: str = settings.default_scenario
    max_players: int = 7
    display_name: str

    @field_validator("max_players")
    @classmethod
    def validate_max_players(cls, v: int) -> int:
        if v < 1 or v > 7:
            raise ValueError("max_players must be between 1 and 7")
        return v

    @field_validator("name", "display_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class PlayerResponse(BaseModel):
    id: int
    user_id: str
    display_name: str
    is_host: bool
    current_nation: Optional[str]
    nations: list[str] = []

    model_config = {"from_attributes": True}


class NationResponse(BaseModel):
    id: int
    nation_key: str
    # From the nation catalogue; unset for nations it does not know
    name: Optional[str] = None
    alliance: Optional[str] = None
    oil: int
    iron: int
    osr: int
    homeland_status: Optional[str]

    model_config = {"from_attributes": True}


class GameResponse(BaseModel):
    id: int
    name: str
    scenario: str
    status: GameStatus
    current_round: int
    current_phase: GamePhase
    max_players: int
    created_at: datetime
    started_at: Optional[datetime]
    players: list[PlayerResponse] = []
    nations: list[NationResponse] = []
    # Readiness of every nation for the current round and phase
    phase_status: dict[str, NationPhaseStatus] = {}
    is_host: bool = False


class JoinGame(BaseModel):
    display_name: str


class AssignNation(BaseModel):
    nation_key: str
    # Defaults to the caller
    player_id: Optional[int] = None


class SetCurrentNation(BaseModel):
    nation_key: str


class PhaseInfo(BaseModel):
    code: GamePhase
    name: str
    order: int
