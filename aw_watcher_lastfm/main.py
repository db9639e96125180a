import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from platformdirs import PlatformDirs

from .aw_sink import ActivityWatchSink, SinkError, BUCKET_ID, EVENT_TYPE, DEFAULT_PORT, TESTING_PORT
from .backfill import BackfillError, sync_history
from .heartbeat import HeartbeatEmitter
from .lastfm_client import LastFMClient
from . import __version__
from .settings import ConfigError, Settings
from .timewindow import sync_window
from .watcher import ShutdownSignal, Watcher, install_signal_handlers

APP_NAME = "aw-watcher-lastfm"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
MAX_LOG_BYTES = 32 * 1024 * 1024

log = logging.getLogger("aw-watcher-lastfm")

# -------------------------
# CLI
# -------------------------
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=APP_NAME,
        allow_abbrev=False,
        description="Report the track currently playing on Last.fm to ActivityWatch.",
    )
    p.add_argument("--port", type=int, default=None,
                   help=f"ActivityWatch server port (default: {DEFAULT_PORT})")
    p.add_argument("--testing", action="store_true",
                   help=f"Use the testing server port ({TESTING_PORT}) and debug logging")
    p.add_argument("--sync", type=sync_window, default=None, metavar="DURATION",
                   help="Import listening history first (format: 7d, 24h, 30m)")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logs")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p

def parse_args(argv=None) -> argparse.Namespace:
    args, unknown = build_parser().parse_known_args(argv)
    args.unknown = unknown
    if args.port is None:
        args.port = TESTING_PORT if args.testing else DEFAULT_PORT
    return args

# -------------------------
# Logging setup
# -------------------------
def log_dir() -> Path:
    dirs = PlatformDirs(appname="activitywatch", appauthor=False)
    path = Path(dirs.user_log_dir) / APP_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path

def setup_logging(level_name: str, *, testing: bool = False, verbose: bool = False,
                  directory: Path | None = None) -> Path:
    level = logging.DEBUG if (testing or verbose) else getattr(logging, level_name.upper(), logging.INFO)
    logfile = (directory or log_dir()) / (f"{APP_NAME}-testing.log" if testing else f"{APP_NAME}.log")
    file_handler = RotatingFileHandler(logfile, maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    logging.getLogger().addHandler(file_handler)
    # aw-client and urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
    return logfile

# -------------------------
# Startup
# -------------------------
def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = Settings.load()
    except ConfigError as e:
        raise SystemExit(str(e))

    logfile = setup_logging(settings.log_level, testing=args.testing, verbose=args.verbose)
    for arg in args.unknown:
        log.warning("Unknown argument: %s", arg)

    log.info("Starting Last.fm → ActivityWatch watcher %s. Poll interval: %ss", __version__, settings.poll_interval)
    log.info("Last.fm user: %s | ActivityWatch: %s:%s | Log: %s",
             settings.username, settings.aw_host, args.port, logfile)

    sink = ActivityWatchSink(host=settings.aw_host, port=args.port, client_name=APP_NAME)
    try:
        sink.wait_until_ready()
        sink.ensure_bucket(BUCKET_ID, EVENT_TYPE)
    except SinkError as e:
        log.error("Failed to connect to ActivityWatch server: %s", e)
        raise SystemExit(1)

    client = LastFMClient(settings.username, settings.api_key)

    if args.sync is not None:
        log.info("Syncing listening history for the last %s", args.sync)
        try:
            sync_history(client, sink, BUCKET_ID, args.sync)
        except BackfillError as e:
            # History is a bonus; live tracking still starts
            log.error("%s", e)

    shutdown = ShutdownSignal()
    install_signal_handlers(shutdown)
    emitter = HeartbeatEmitter(sink, BUCKET_ID, settings.poll_interval)
    Watcher(client, emitter, settings.poll_interval, shutdown).serve()
    return 0

def cli():
    try:
        code = main()
    except KeyboardInterrupt:
        # Ctrl+C before the poll loop installed its own handler
        log.info("Shutting down…")
        code = 130
    raise SystemExit(code)
