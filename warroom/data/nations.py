from dataclasses import dataclass, field


@dataclass
class NationData:
    nation_key: str
    name: str
    alliance: str  # "allies" or "axis"
    # Resources this nation can never gain from territory income
    income_exempt: tuple[str, ...] = field(default_factory=tuple)
    exemption_reason: str = ""


NATION_DATA: dict[str, NationData] = {
    "CHINA": NationData(
        nation_key="CHINA",
        name="China",
        alliance="allies",
        income_exempt=("oil",),
        exemption_reason="China cannot gain or spend Oil.",
    ),
    "BRITISH COMMONWEALTH": NationData(
        nation_key="BRITISH COMMONWEALTH",
        name="British Commonwealth",
        alliance="allies",
    ),
    "SOVIET UNION": NationData(
        nation_key="SOVIET UNION",
        name="Soviet Union",
        alliance="allies",
    ),
    "UNITED STATES": NationData(
        nation_key="UNITED STATES",
        name="United States",
        alliance="allies",
    ),
    "GERMANY": NationData(
        nation_key="GERMANY",
        name="Germany",
        alliance="axis",
    ),
    "ITALY": NationData(
        nation_key="ITALY",
        name="Italy",
        alliance="axis",
    ),
    "IMPERIAL JAPAN": NationData(
        nation_key="IMPERIAL JAPAN",
        name="Imperial Japan",
        alliance="axis",
    ),
}


def get_nation_data(nation_key: str) -> NationData | None:
    return NATION_DATA.get(nation_key)


def list_nations() -> list[NationData]:
    return list(NATION_DATA.values())
