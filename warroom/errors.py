"""Typed errors raised by the game services.

Precondition failures leave the store untouched and are safe to retry after
re-reading the game. ``IncomeApplicationError`` is different: the store
refused the credit transaction and the message carries the underlying cause.
"""


class GameRuleError(ValueError):
    """Base for every precondition failure reported back to the caller."""


class NotFound(GameRuleError):
    pass


class NotActive(GameRuleError):
    pass


class NotHost(GameRuleError):
    pass


class InvalidPhase(GameRuleError):
    """The caller's (round, phase) no longer matches the game's current one."""


class AlreadyLocked(GameRuleError):
    pass


class NotAllCommitted(GameRuleError):
    def __init__(self, pending: list[str]):
        self.pending = pending
        super().__init__(
            "Not all nations have committed the current phase: " + ", ".join(pending)
        )


class IncomeNotApplied(GameRuleError):
    """The round would end without its income ever having been credited."""


class IncomeApplicationError(RuntimeError):
    pass
