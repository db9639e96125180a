import logging
from urllib.parse import urlencode

import requests

from . import __version__

log = logging.getLogger("lastfm")

API_ROOT = "https://ws.audioscrobbler.com/2.0/"
USER_AGENT = f"aw-watcher-lastfm/{__version__}"

# Custom error classes so callers can branch
class LastFMError(Exception): ...
class LastFMNetworkError(LastFMError): ...
class LastFMParseError(LastFMError): ...

class LastFMAPIError(LastFMError):
    """The response carried an explicit `error` field."""

    def __init__(self, code, message: str):
        super().__init__(f"last.fm API error {code}: {message}")
        self.code = code
        self.message = message


class LastFMClient:
    """Fetches user.getrecenttracks as a JSON document. One request per call, no retries."""

    def __init__(self, username: str, api_key: str, timeout: float = 5,
                 session: requests.Session | None = None):
        self.username = username
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def recent_tracks_url(self, limit: int = 1, from_ts: int | None = None) -> str:
        params = {
            "method": "user.getrecenttracks",
            "user": self.username,
            "api_key": self.api_key,
            "format": "json",
            "limit": limit,
        }
        if from_ts is not None:
            params["from"] = int(from_ts)
        return f"{API_ROOT}?{urlencode(params)}"

    def get_recent_tracks(self, limit: int = 1, from_ts: int | None = None) -> dict:
        return self.fetch(self.recent_tracks_url(limit=limit, from_ts=from_ts))

    def fetch(self, url: str) -> dict:
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise LastFMNetworkError(f"error connecting to last.fm: {e}") from e

        try:
            doc = resp.json()
        except ValueError as e:
            if not resp.ok:
                raise LastFMNetworkError(f"last.fm returned HTTP {resp.status_code}") from e
            raise LastFMParseError(f"error parsing json: {e}") from e

        if not isinstance(doc, dict):
            raise LastFMParseError(f"expected a JSON object, got {type(doc).__name__}")

        # Last.fm reports API errors in the body, often alongside a 4xx status
        if "error" in doc:
            message = doc.get("message")
            raise LastFMAPIError(doc["error"], message if isinstance(message, str) else "unknown error")

        if not resp.ok:
            raise LastFMNetworkError(f"last.fm returned HTTP {resp.status_code}")

        log.debug("Fetched recent tracks for %s (HTTP %s)", self.username, resp.status_code)
        return doc
