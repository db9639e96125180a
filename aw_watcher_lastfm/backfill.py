"""
One-shot import of past scrobbles (--sync).

- Fetches a single page of up to 200 tracks listened to since now - lookback.
  Older history than that page is not fetched.
- Inserts them oldest-first as discrete 30 s events (plain insert, never
  heartbeat, so historical plays are not merged or extended).
- A failed insert is logged and skipped; the rest of the batch still goes in.
- A failed fetch (network, bad JSON, Last.fm `error` body) aborts the whole
  sync with BackfillError before anything is inserted.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .aw_sink import SinkError
from .events import ActivityEvent
from .lastfm_client import LastFMClient, LastFMError
from .nowplaying import extract_played_track, track_entries

log = logging.getLogger("backfill")

HISTORY_PAGE_SIZE = 200
HISTORICAL_EVENT_DURATION = timedelta(seconds=30)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class BackfillError(Exception): ...


@dataclass
class BackfillResult:
    fetched: int = 0
    inserted: int = 0
    failed: int = 0
    skipped: int = 0


def from_timestamp(lookback: timedelta, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    # Windows reaching past the epoch just mean "everything"
    if lookback >= now - _EPOCH:
        return 0
    return int((now - lookback).timestamp())


def historical_events(doc) -> tuple[list[ActivityEvent], int]:
    """Events for every dated track in `doc`, oldest first, plus the number skipped."""
    events, skipped = [], 0
    # The API lists newest first
    for entry in reversed(track_entries(doc)):
        track = extract_played_track(entry)
        if track is None:
            skipped += 1
            continue
        events.append(ActivityEvent.from_track(
            track, timestamp=track.played_at, duration=HISTORICAL_EVENT_DURATION,
        ))
    # Stable sort keeps the reversed order for equal timestamps
    events.sort(key=lambda e: e.timestamp)
    return events, skipped


def sync_history(client: LastFMClient, sink, bucket_id: str, lookback: timedelta,
                 now: datetime | None = None) -> BackfillResult:
    since = from_timestamp(lookback, now)
    try:
        doc = client.get_recent_tracks(limit=HISTORY_PAGE_SIZE, from_ts=since)
    except LastFMError as e:
        raise BackfillError(f"historical sync failed: {e}") from e

    events, skipped = historical_events(doc)
    result = BackfillResult(fetched=len(events) + skipped, skipped=skipped)
    log.debug("Syncing %s historical tracks...", len(events))

    for event in events:
        try:
            sink.insert(bucket_id, event)
            result.inserted += 1
        except SinkError as e:
            result.failed += 1
            log.warning("Error inserting historical event at %s: %s", event.timestamp.isoformat(), e)

    log.info("Historical sync completed: %s inserted, %s failed, %s skipped",
             result.inserted, result.failed, result.skipped)
    return result
