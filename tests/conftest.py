from __future__ import annotations

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from aw_watcher_lastfm.aw_sink import SinkError  # noqa: E402


class FakeSink:
    """Records what the watcher would send to ActivityWatch."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on or (lambda event: False)
        self.ready = True
        self.buckets: list[tuple[str, str]] = []
        self.inserts: list[tuple[str, object]] = []
        self.heartbeats: list[tuple[str, object, float]] = []

    def wait_until_ready(self, timeout: int = 10) -> None:
        if not self.ready:
            raise SinkError("server down")

    def ensure_bucket(self, bucket_id: str, event_type: str) -> None:
        self.buckets.append((bucket_id, event_type))

    def insert(self, bucket_id, event) -> None:
        if self.fail_on(event):
            raise SinkError("insert rejected")
        self.inserts.append((bucket_id, event))

    def heartbeat(self, bucket_id, event, merge_window) -> None:
        if self.fail_on(event):
            raise SinkError("heartbeat rejected")
        self.heartbeats.append((bucket_id, event, merge_window))


@pytest.fixture()
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture()
def make_sink():
    return FakeSink


@pytest.fixture()
def track():
    """Build one user.getrecenttracks entry."""

    def _track(name="Song", artist="Artist", album="Album", uts=None, nowplaying=None):
        entry = {
            "name": name,
            "artist": {"mbid": "", "#text": artist},
            "album": {"mbid": "", "#text": album if album is not None else ""},
            "url": "https://www.last.fm/music/x",
        }
        if uts is not None:
            entry["date"] = {"uts": str(uts), "#text": "01 Jan 2026, 00:00"}
        if nowplaying is not None:
            entry["@attr"] = {"nowplaying": nowplaying}
        return entry

    return _track


@pytest.fixture()
def recent_tracks():
    """Wrap entries in a user.getrecenttracks document."""

    def _doc(*entries):
        return {
            "recenttracks": {
                "track": list(entries),
                "@attr": {"user": "someone", "page": "1", "perPage": "1", "total": str(len(entries))},
            }
        }

    return _doc


@pytest.fixture()
def restore_logging():
    import logging

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
