from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

log = logging.getLogger("nowplaying")

@dataclass(frozen=True)
class NowPlayingSnapshot:
    title: str | None
    artist: str | None
    album: str | None
    is_playing: bool

@dataclass(frozen=True)
class HistoricalTrack:
    title: str | None
    artist: str | None
    album: str | None
    played_at: datetime   # UTC

# -------------------------
# Field extraction over user.getrecenttracks documents.
# Each helper returns None for a missing or wrongly-typed field; nothing here raises.
# -------------------------
def _child(obj, key: str) -> dict | None:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, dict) else None

def _text_field(obj, key: str) -> str | None:
    """String under `key`, or under `key`["#text"] (Last.fm's artist/album shape)."""
    if not isinstance(obj, dict):
        return None
    value = obj.get(key)
    if isinstance(value, dict):
        value = value.get("#text")
    if not isinstance(value, str):
        return None
    return value or None

def track_entries(doc) -> list[dict]:
    tracks = (_child(doc, "recenttracks") or {}).get("track")
    # A single result sometimes comes back as a bare object instead of a list
    if isinstance(tracks, dict):
        tracks = [tracks]
    if not isinstance(tracks, list):
        return []
    return [t for t in tracks if isinstance(t, dict)]

def is_now_playing(entry: dict) -> bool:
    attr = _child(entry, "@attr")
    return attr is not None and attr.get("nowplaying") == "true"

def extract_now_playing(doc) -> NowPlayingSnapshot | None:
    """Snapshot of the currently playing track, or None when nothing is playing.

    Only the first entry is inspected; the API lists the now-playing row first.
    """
    entries = track_entries(doc)
    if not entries or not is_now_playing(entries[0]):
        return None
    first = entries[0]
    return NowPlayingSnapshot(
        title=_text_field(first, "name"),
        artist=_text_field(first, "artist"),
        album=_text_field(first, "album"),
        is_playing=True,
    )

def _played_at(entry: dict) -> datetime | None:
    uts = (_child(entry, "date") or {}).get("uts")
    if isinstance(uts, int) and not isinstance(uts, bool):
        seconds = uts
    elif isinstance(uts, str) and uts.strip().isascii() and uts.strip().isdigit():
        seconds = int(uts)
    else:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

def extract_played_track(entry: dict) -> HistoricalTrack | None:
    """A past scrobble with its listen time; None if the entry has no usable date."""
    played_at = _played_at(entry)
    if played_at is None:
        log.debug("Skipping track without a usable date: %s", _text_field(entry, "name"))
        return None
    return HistoricalTrack(
        title=_text_field(entry, "name"),
        artist=_text_field(entry, "artist"),
        album=_text_field(entry, "album"),
        played_at=played_at,
    )
