from pydantic import BaseModel, Field


class IncomeTotalsResponse(BaseModel):
    oil: int
    iron: int
    osr: int

    model_config = {"from_attributes": True}


class TerritoryIncomeLineResponse(BaseModel):
    territory_code: str
    territory_name: str
    status: str
    used_embattled_side: bool
    oil: int
    iron: int
    osr: int

    model_config = {"from_attributes": True}


class NationIncomeBreakdownResponse(BaseModel):
    nation_id: int
    nation_key: str
    lines: list[TerritoryIncomeLineResponse]
    totals: IncomeTotalsResponse
    warnings: list[str] = []
    overrides: list[str] = []

    model_config = {"from_attributes": True}


class IncomePreviewResponse(BaseModel):
    round: int
    already_applied: bool
    breakdowns: list[NationIncomeBreakdownResponse]
    projected: dict[str, IncomeTotalsResponse]

    model_config = {"from_attributes": True}


class ApplyIncomeRequest(BaseModel):
    round: int = Field(ge=1)


class IncomeApplicationResponse(BaseModel):
    round: int
    already_applied: bool
    breakdowns: list[NationIncomeBreakdownResponse]

    model_config = {"from_attributes": True}


class TerritoryControlResponse(BaseModel):
    territory_code: str
    nation_id: int | None
    status: str

    model_config = {"from_attributes": True}


class EconomySnapshotResponse(BaseModel):
    controls: list[TerritoryControlResponse]
    missing_territories: list[str]
