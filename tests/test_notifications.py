import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from warroom.errors import InvalidPhase
from warroom.models.game import Game, GamePhase, GameStatus
from warroom.models.nation import Nation
from warroom.services import notification_service
from warroom.services.commit_service import commit_phase
from warroom.services.notification_service import (
    ChangeKind,
    ChangeNotification,
    notify_change,
    subscribe,
    unsubscribe,
)
from warroom.services.phase_service import advance_phase


async def _make_active_game(db: AsyncSession) -> Game:
    game = Game(
        name="Notify Test",
        scenario="Global War",
        status=GameStatus.ACTIVE,
        current_round=1,
        current_phase=GamePhase.ECONOMY,
        max_players=7,
    )
    db.add(game)
    await db.flush()
    db.add(Nation(game_id=game.id, nation_key="GERMANY"))
    await db.commit()
    return game


class Recorder:
    def __init__(self):
        self.received: list[ChangeNotification] = []

    async def __call__(self, notification: ChangeNotification) -> None:
        self.received.append(notification)


class TestFanOut:
    async def test_subscribers_receive_changes(self):
        recorder = Recorder()
        subscribe(recorder)
        await notify_change(7, ChangeKind.GAME, round=2)

        [notification] = recorder.received
        assert notification.game_id == 7
        assert notification.kind == ChangeKind.GAME
        assert notification.details == {"round": 2}

    async def test_subscribe_is_idempotent(self):
        recorder = Recorder()
        subscribe(recorder)
        subscribe(recorder)
        await notify_change(1, ChangeKind.GAME)
        assert len(recorder.received) == 1

    async def test_unsubscribe(self):
        recorder = Recorder()
        subscribe(recorder)
        unsubscribe(recorder)
        await notify_change(1, ChangeKind.GAME)
        assert recorder.received == []
        assert notification_service._subscribers == []

    async def test_failing_subscriber_does_not_break_delivery(self, caplog):
        async def broken(notification):
            raise ConnectionError("socket closed")

        recorder = Recorder()
        subscribe(broken)
        subscribe(recorder)

        await notify_change(3, ChangeKind.NATION_BALANCE)
        assert len(recorder.received) == 1
        assert "socket closed" in caplog.text


class TestServiceNotifications:
    async def test_commit_and_advance_notify(self, db_session: AsyncSession):
        game = await _make_active_game(db_session)
        recorder = Recorder()
        subscribe(recorder)

        await commit_phase(db_session, game.id, "GERMANY", 1, GamePhase.ECONOMY)
        await advance_phase(db_session, game.id, requested_by_host=True)

        kinds = [n.kind for n in recorder.received]
        assert kinds == [ChangeKind.PHASE_STATE, ChangeKind.GAME, ChangeKind.PHASE_STATE]
        assert recorder.received[0].details["status"] == "COMMITTED"
        assert recorder.received[1].details["phase"] == "PLANNING"

    async def test_rejected_mutation_is_silent(self, db_session: AsyncSession):
        game = await _make_active_game(db_session)
        game_id = game.id
        recorder = Recorder()
        subscribe(recorder)

        with pytest.raises(InvalidPhase):
            await commit_phase(db_session, game_id, "GERMANY", 1, GamePhase.COMBAT)
        assert recorder.received == []

    async def test_noop_commit_is_silent(self, db_session: AsyncSession):
        game = await _make_active_game(db_session)
        await commit_phase(db_session, game.id, "GERMANY", 1, GamePhase.ECONOMY)

        recorder = Recorder()
        subscribe(recorder)
        result = await commit_phase(db_session, game.id, "GERMANY", 1, GamePhase.ECONOMY)
        assert result.changed is False
        assert recorder.received == []
