"""Tests for server_logging.event_log module."""

from datetime import datetime, timedelta, timezone

from bossrush.game_server.server_logging.event_log import EventLogger, EventRecord


def _record(ts: datetime, event: str, *, sender=None, receiver=None, zone=None) -> EventRecord:
    return EventRecord(
        timestamp=ts.isoformat(),
        direction="sent",
        event=event,
        payload={"zoneId": zone},
        sender=sender,
        receiver=receiver,
        zone=zone,
        meta=None,
    )


def _populate(logger: EventLogger, base: datetime) -> None:
    logger.append(_record(base, "bossState", sender="p1", zone="meadow"))
    logger.append(_record(base + timedelta(seconds=1), "playerState", receiver="p2", zone="meadow"))
    logger.append(_record(base + timedelta(seconds=2), "bossState", sender="p3", zone="forest"))


def test_query_filters(tmp_path):
    log = EventLogger(tmp_path / "events.jsonl")
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _populate(log, base)
    end = base + timedelta(minutes=1)

    by_zone, _ = log.query(base, end, zone="meadow")
    by_player, _ = log.query(base, end, player_id="p2")
    by_event, _ = log.query(base, end, event="bossState")

    assert [e["event"] for e in by_zone] == ["bossState", "playerState"]
    assert [e["receiver"] for e in by_player] == ["p2"]
    assert [e["zone"] for e in by_event] == ["meadow", "forest"]


def test_query_time_window_and_naive_bounds(tmp_path):
    log = EventLogger(tmp_path / "events.jsonl")
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _populate(log, base)

    results, truncated = log.query(
        datetime(2024, 1, 1, 0, 0, 1), datetime(2024, 1, 1, 0, 0, 1)
    )

    assert [e["event"] for e in results] == ["playerState"]
    assert truncated is False


def test_query_limit_and_reverse(tmp_path):
    log = EventLogger(tmp_path / "events.jsonl")
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _populate(log, base)
    end = base + timedelta(minutes=1)

    forward, forward_truncated = log.query(base, end, limit=2)
    reverse, reverse_truncated = log.query(base, end, limit=2, sort_direction="reverse")

    assert [e["sender"] for e in forward] == ["p1", None]
    assert forward_truncated is True
    assert [e["sender"] for e in reverse] == ["p3", None]
    assert reverse_truncated is True


def test_missing_file_returns_empty(tmp_path):
    log = EventLogger(tmp_path / "nested" / "events.jsonl")
    now = datetime.now(timezone.utc)

    assert log.query(now, now) == ([], False)


def test_query_skips_malformed_lines(tmp_path):
    path = tmp_path / "events.jsonl"
    log = EventLogger(path)
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _populate(log, base)
    with path.open("a", encoding="utf-8") as handle:
        handle.write("{not json\n")
        handle.write('{"event": "bossState"}\n')

    results, _ = log.query(base, base + timedelta(minutes=1))

    assert [e["event"] for e in results] == ["bossState", "playerState", "bossState"]
