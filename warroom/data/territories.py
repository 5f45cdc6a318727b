"""
Static territory reference data and scenario starting control.

Each territory yields a resource triple (oil, iron, osr) per round. A territory
held under EMBATTLED control yields its embattled triple instead, which is
never larger than the active one.
"""

from dataclasses import dataclass

from warroom.data.scenarios import GLOBAL_WAR


@dataclass(frozen=True)
class Yield:
    oil: int = 0
    iron: int = 0
    osr: int = 0


@dataclass
class TerritoryData:
    code: str
    name: str
    active: Yield
    embattled: Yield


def _t(code: str, name: str, active: tuple[int, int, int], embattled: tuple[int, int, int]) -> TerritoryData:
    return TerritoryData(code=code, name=name, active=Yield(*active), embattled=Yield(*embattled))


TERRITORY_DATA: list[TerritoryData] = [
    # Europe
    _t("GBR", "Great Britain", (0, 2, 2), (0, 1, 1)),
    _t("FRA", "France", (0, 2, 1), (0, 1, 0)),
    _t("GER", "Germany", (0, 3, 2), (0, 2, 1)),
    _t("RUH", "Ruhr", (0, 3, 1), (0, 1, 1)),
    _t("ROM", "Romania", (3, 0, 0), (1, 0, 0)),
    _t("ITA", "Italy", (0, 1, 2), (0, 1, 1)),
    _t("SCA", "Scandinavia", (0, 2, 0), (0, 1, 0)),
    _t("POL", "Poland", (0, 1, 1), (0, 0, 1)),
    # Soviet Union
    _t("MOS", "Moscow", (0, 2, 2), (0, 1, 1)),
    _t("UKR", "Ukraine", (0, 2, 1), (0, 1, 0)),
    _t("CAU", "Caucasus", (3, 0, 1), (1, 0, 0)),
    _t("URA", "Urals", (0, 2, 1), (0, 1, 1)),
    # Middle East and Africa
    _t("PER", "Persia", (2, 0, 0), (1, 0, 0)),
    _t("IRQ", "Iraq", (2, 0, 0), (1, 0, 0)),
    _t("EGY", "Egypt", (0, 0, 1), (0, 0, 0)),
    _t("LIB", "Libya", (1, 0, 0), (0, 0, 0)),
    _t("SAF", "South Africa", (0, 1, 1), (0, 1, 0)),
    # Asia and Pacific
    _t("IND", "India", (0, 1, 2), (0, 1, 1)),
    _t("MAN", "Manchuria", (0, 2, 1), (0, 1, 0)),
    _t("CHN", "Central China", (0, 1, 1), (0, 0, 1)),
    _t("SZE", "Szechwan", (0, 1, 1), (0, 1, 0)),
    _t("JPN", "Japan", (0, 1, 2), (0, 1, 1)),
    _t("DEI", "Dutch East Indies", (3, 0, 1), (1, 0, 1)),
    _t("AUS", "Australia", (0, 1, 1), (0, 1, 0)),
    # Americas
    _t("USE", "Eastern United States", (0, 3, 3), (0, 2, 1)),
    _t("USW", "Western United States", (1, 2, 1), (0, 1, 1)),
    _t("TEX", "Texas", (3, 0, 0), (1, 0, 0)),
    _t("CAN", "Canada", (0, 1, 1), (0, 1, 0)),
    _t("VEN", "Venezuela", (2, 0, 0), (1, 0, 0)),
]


STARTING_CONTROL: dict[str, dict[str, str]] = {
    GLOBAL_WAR: {
        "GBR": "BRITISH COMMONWEALTH",
        "EGY": "BRITISH COMMONWEALTH",
        "SAF": "BRITISH COMMONWEALTH",
        "IND": "BRITISH COMMONWEALTH",
        "IRQ": "BRITISH COMMONWEALTH",
        "AUS": "BRITISH COMMONWEALTH",
        "CAN": "BRITISH COMMONWEALTH",
        "GER": "GERMANY",
        "RUH": "GERMANY",
        "POL": "GERMANY",
        "ROM": "GERMANY",
        "ITA": "ITALY",
        "LIB": "ITALY",
        "MOS": "SOVIET UNION",
        "UKR": "SOVIET UNION",
        "CAU": "SOVIET UNION",
        "URA": "SOVIET UNION",
        "MAN": "IMPERIAL JAPAN",
        "JPN": "IMPERIAL JAPAN",
        "CHN": "CHINA",
        "SZE": "CHINA",
        "USE": "UNITED STATES",
        "USW": "UNITED STATES",
        "TEX": "UNITED STATES",
    },
}


def get_starting_control(scenario: str) -> dict[str, str]:
    """Exact-match lookup; scenario labels are never guessed."""
    return dict(STARTING_CONTROL.get(scenario, {}))
