from typing import Optional

from pydantic import BaseModel, Field

from warroom.models.game import GamePhase
from warroom.models.nation_phase_state import NationPhaseStatus
from warroom.schemas.economy import IncomeApplicationResponse


class PhaseCommitRequest(BaseModel):
    nation_key: str
    round: int = Field(ge=1)
    phase: GamePhase


class PhaseCommitResponse(BaseModel):
    nation_key: str
    round: int
    phase: GamePhase
    status: NationPhaseStatus
    changed: bool

    model_config = {"from_attributes": True}


class PhaseStatusResponse(BaseModel):
    round: int
    phase: GamePhase
    nations: dict[str, NationPhaseStatus]


class AdvanceResponse(BaseModel):
    from_round: int
    from_phase: GamePhase
    current_round: int
    current_phase: GamePhase
    # Present when the advance left the ECONOMY phase and income was credited
    income: Optional[IncomeApplicationResponse] = None
    income_error: Optional[str] = None
