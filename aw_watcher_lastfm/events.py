from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

# -------------------------
# The unit stored in the event bucket
# -------------------------
@dataclass(frozen=True)
class ActivityEvent:
    """One event for the ActivityWatch bucket; `id` is assigned by the server."""

    timestamp: datetime
    duration: timedelta
    data: dict = field(default_factory=dict)
    id: int | None = None

    def __post_init__(self):
        if self.duration < timedelta(0):
            raise ValueError(f"event duration must be non-negative, got {self.duration}")
        # Naive timestamps are taken to be UTC
        if self.timestamp.tzinfo is None:
            object.__setattr__(self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc))

    @classmethod
    def from_track(cls, track, *, timestamp: datetime, duration: timedelta) -> "ActivityEvent":
        """Build an event from anything with title/artist/album attributes."""
        return cls(
            timestamp=timestamp,
            duration=duration,
            data={"title": track.title, "artist": track.artist, "album": track.album},
        )
