"""Change notifications: tells subscribers that game state changed.

The transport (websockets, push, polling hints) lives outside this service.
Subscribers are async callables registered at startup; delivery is
best-effort so a failing subscriber never breaks a game mutation.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class ChangeKind(str, enum.Enum):
    GAME = "game"
    PHASE_STATE = "phase_state"
    NATION_BALANCE = "nation_balance"


@dataclass
class ChangeNotification:
    game_id: int
    kind: ChangeKind
    details: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[ChangeNotification], Awaitable[None]]

_subscribers: list[Subscriber] = []


def subscribe(callback: Subscriber) -> None:
    if callback not in _subscribers:
        _subscribers.append(callback)


def unsubscribe(callback: Subscriber) -> None:
    if callback in _subscribers:
        _subscribers.remove(callback)


async def notify_change(game_id: int, kind: ChangeKind, **details: Any) -> None:
    """Fan a change out to every subscriber. Call only after the change is committed."""
    notification = ChangeNotification(game_id=game_id, kind=kind, details=details)
    logger.debug("Change in game %s: %s %s", game_id, kind.value, details)
    for callback in list(_subscribers):
        try:
            await callback(notification)
        except Exception as exc:
            logger.warning(
                "Change subscriber %r failed for game %s (%s): %s",
                callback,
                game_id,
                kind.value,
                exc,
            )
