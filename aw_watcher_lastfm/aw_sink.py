"""
ActivityWatch event sink.

- Thin wrapper over aw-client exposing the four operations the watcher needs:
  wait_until_ready(), ensure_bucket(), insert(), heartbeat().
- Every library/transport failure surfaces as SinkError so callers can decide
  whether it is fatal (startup) or just logged (per tick, per historical item).
"""

from __future__ import annotations
import logging

from aw_client import ActivityWatchClient
from aw_core.models import Event

from .events import ActivityEvent

log = logging.getLogger("activitywatch")

CLIENT_NAME = "aw-watcher-lastfm"
BUCKET_ID = "aw-watcher-lastfm"
EVENT_TYPE = "currently-playing"
DEFAULT_PORT = 5600
TESTING_PORT = 5699


class SinkError(Exception): ...


def to_aw_event(event: ActivityEvent) -> Event:
    return Event(
        id=event.id,
        timestamp=event.timestamp,
        duration=event.duration,
        data=dict(event.data),
    )


class ActivityWatchSink:
    def __init__(self, host: str = "localhost", port: int = DEFAULT_PORT,
                 client_name: str = CLIENT_NAME, client: ActivityWatchClient | None = None):
        self.host = host
        self.port = port
        self.client = client or ActivityWatchClient(client_name, host=host, port=port)

    def wait_until_ready(self, timeout: int = 10) -> None:
        try:
            self.client.wait_for_start(timeout=timeout)
        except Exception as e:
            # aw-client signals "server never came up" with a bare Exception
            raise SinkError(f"ActivityWatch server at {self.host}:{self.port} is not reachable: {e}") from e

    def ensure_bucket(self, bucket_id: str = BUCKET_ID, event_type: str = EVENT_TYPE) -> None:
        try:
            self.client.create_bucket(bucket_id, event_type=event_type)
        except Exception as e:
            raise SinkError(f"failed to create bucket {bucket_id!r}: {e}") from e
        log.debug("Bucket %s (%s) ready", bucket_id, event_type)

    def insert(self, bucket_id: str, event: ActivityEvent) -> None:
        try:
            self.client.insert_event(bucket_id, to_aw_event(event))
        except Exception as e:
            raise SinkError(f"insert into {bucket_id!r} failed: {e}") from e

    def heartbeat(self, bucket_id: str, event: ActivityEvent, merge_window: float) -> None:
        try:
            self.client.heartbeat(bucket_id, to_aw_event(event), pulsetime=float(merge_window))
        except Exception as e:
            raise SinkError(f"heartbeat to {bucket_id!r} failed: {e}") from e
