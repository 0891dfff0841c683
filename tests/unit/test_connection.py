import asyncio

import pytest

from bossrush.game_server.rpc.connection import Connection


class RecordingWebSocket:
    def __init__(self) -> None:
        self.sent: list = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def send_json(self, data) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        self.sent.append(data)
        self.in_flight -= 1


@pytest.mark.asyncio
async def test_sends_are_serialized():
    ws = RecordingWebSocket()
    connection = Connection(ws)

    await asyncio.gather(
        *(connection.send_event({"event": "bossState", "payload": {"n": i}}) for i in range(5))
    )

    assert len(ws.sent) == 5
    assert ws.max_in_flight == 1


def test_player_binding_is_fixed():
    connection = Connection(RecordingWebSocket())

    connection.set_player("p1")
    connection.set_player("p1")

    assert connection.match_character("p1")
    assert not connection.match_character("p2")
    with pytest.raises(ValueError):
        connection.set_player("p2")


def test_zone_changes_freely():
    connection = Connection(RecordingWebSocket())

    connection.set_zone("meadow")
    connection.set_zone("forest")
    assert connection.zone_id == "forest"

    connection.set_zone(None)
    assert connection.zone_id is None
