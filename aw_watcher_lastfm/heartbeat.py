from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone

from .aw_sink import SinkError
from .events import ActivityEvent
from .nowplaying import NowPlayingSnapshot

log = logging.getLogger("heartbeat")

class HeartbeatEmitter:
    """Turns a now-playing snapshot into a heartbeat event.

    The event lasts one poll interval and the merge window equals the poll
    interval, so back-to-back heartbeats for the same track coalesce into one
    span server-side.
    """

    def __init__(self, sink, bucket_id: str, poll_interval: int):
        self.sink = sink
        self.bucket_id = bucket_id
        self.poll_interval = poll_interval

    def build_event(self, snapshot: NowPlayingSnapshot, now: datetime | None = None) -> ActivityEvent:
        return ActivityEvent.from_track(
            snapshot,
            timestamp=now or datetime.now(timezone.utc),
            duration=timedelta(seconds=self.poll_interval),
        )

    def emit(self, snapshot: NowPlayingSnapshot, now: datetime | None = None) -> bool:
        event = self.build_event(snapshot, now)
        try:
            self.sink.heartbeat(self.bucket_id, event, merge_window=self.poll_interval)
        except SinkError as e:
            # Next tick sends the same track again
            log.warning("Error sending heartbeat: %s", e)
            return False
        log.debug("Heartbeat: %s — %s%s", snapshot.artist, snapshot.title,
                  f" [{snapshot.album}]" if snapshot.album else "")
        return True
