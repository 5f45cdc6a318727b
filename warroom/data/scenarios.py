"""Scenarios and the nations seeded when a game is created for them.

Nation keys use the formal rulebook names, already normalized.
"""

GLOBAL_WAR = "Global War"

SCENARIO_NATIONS: dict[str, list[str]] = {
    GLOBAL_WAR: [
        "CHINA",
        "BRITISH COMMONWEALTH",
        "SOVIET UNION",
        "UNITED STATES",
        "GERMANY",
        "ITALY",
        "IMPERIAL JAPAN",
    ],
}


def get_scenario_nations(scenario: str) -> list[str]:
    """Nations in play for a scenario; unknown scenarios seed no nations."""
    return list(SCENARIO_NATIONS.get(scenario, []))


def list_scenarios() -> list[str]:
    return list(SCENARIO_NATIONS)
