"""
Runtime configuration.

Read from the ActivityWatch config dir (aw-watcher-lastfm/aw-watcher-lastfm.toml,
created with placeholder values on first run):

    [aw-watcher-lastfm]
    username = "..."
    apikey = "..."
    polling_interval = 10

Environment variables override the file:
- LASTFM_USERNAME, LASTFM_API_KEY
- POLL_INTERVAL (seconds, at least 3 for Last.fm rate limits)
- AW_HOST (ActivityWatch server host, default localhost)
- LOG_LEVEL (DEBUG|INFO|WARNING|ERROR, default INFO)
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from collections.abc import Mapping

from aw_core.config import load_config_toml
from aw_core.dirs import get_config_dir

CONFIG_SECTION = "aw-watcher-lastfm"
MIN_POLL_INTERVAL = 3
DEFAULT_POLL_INTERVAL = 10

# Values written to a fresh config file; treated as "not configured"
PLACEHOLDER_USERNAME = "your_username"
PLACEHOLDER_API_KEY = "your-api-key"

DEFAULT_CONFIG = f"""
[{CONFIG_SECTION}]
username = "{PLACEHOLDER_USERNAME}"
apikey = "{PLACEHOLDER_API_KEY}"
polling_interval = {DEFAULT_POLL_INTERVAL}
""".strip()


class ConfigError(Exception): ...
class MissingConfigError(ConfigError): ...
class PlaceholderCredentialsError(ConfigError): ...
class InvalidIntervalError(ConfigError): ...


def config_path() -> Path:
    return Path(get_config_dir(CONFIG_SECTION)) / f"{CONFIG_SECTION}.toml"


def load_config() -> Mapping:
    """The [aw-watcher-lastfm] table; aw-core writes a template file if there is none yet."""
    config = load_config_toml(CONFIG_SECTION, DEFAULT_CONFIG)
    section = config.get(CONFIG_SECTION)
    return section if isinstance(section, Mapping) else {}


def _interval(raw) -> int:
    try:
        if isinstance(raw, bool) or not isinstance(raw, (int, str)):
            raise ValueError(raw)
        value = int(raw)
    except ValueError:
        raise InvalidIntervalError(f"polling interval must be a whole number of seconds, got {raw!r}") from None
    if value < MIN_POLL_INTERVAL:
        raise InvalidIntervalError(f"Polling interval must be at least {MIN_POLL_INTERVAL} seconds")
    return value


@dataclass(frozen=True)
class Settings:
    username: str
    api_key: str
    poll_interval: int = DEFAULT_POLL_INTERVAL
    aw_host: str = "localhost"
    log_level: str = "INFO"

    @classmethod
    def load(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        return cls.from_config(load_config(), environ, source=str(config_path()))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        return cls.from_config({}, environ, source="the environment")

    @classmethod
    def from_config(cls, config: Mapping, environ: Mapping[str, str] | None = None,
                    source: str = "the config file") -> "Settings":
        env = os.environ if environ is None else environ

        def text(env_key: str, config_key: str) -> str:
            value = env.get(env_key) or config.get(config_key) or ""
            return str(value).strip()

        username = text("LASTFM_USERNAME", "username")
        api_key = text("LASTFM_API_KEY", "apikey")
        if not username or not api_key:
            raise MissingConfigError(
                f"Please set username and apikey in {source} (or LASTFM_USERNAME and LASTFM_API_KEY)"
            )
        if username == PLACEHOLDER_USERNAME or api_key == PLACEHOLDER_API_KEY:
            raise PlaceholderCredentialsError(f"Please set your api key and username at {source}")

        raw_interval = env.get("POLL_INTERVAL") or config.get("polling_interval", DEFAULT_POLL_INTERVAL)

        return cls(
            username=username,
            api_key=api_key,
            poll_interval=_interval(raw_interval),
            aw_host=env.get("AW_HOST") or "localhost",
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
