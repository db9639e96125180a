from __future__ import annotations
import logging
import signal
import threading
import time

from .heartbeat import HeartbeatEmitter
from .lastfm_client import LastFMClient, LastFMError
from .nowplaying import extract_now_playing

log = logging.getLogger("watcher")


class ShutdownSignal:
    """One-shot stop notification between a signal handler and the poll loop.

    The first send() wins; later sends are ignored.
    """

    def __init__(self):
        self._event = threading.Event()

    def send(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Block up to `timeout` seconds; True if shutdown was requested."""
        return self._event.wait(timeout)


def install_signal_handlers(shutdown: ShutdownSignal,
                            signums=(signal.SIGINT, signal.SIGTERM)) -> None:
    # Must run on the main thread
    def _handler(signum, frame):
        if not shutdown.is_set():
            log.info("Received interrupt signal, shutting down gracefully...")
        shutdown.send()

    for signum in signums:
        signal.signal(signum, _handler)


class Watcher:
    """Polls Last.fm every `interval` seconds and heartbeats whatever is playing.

    Ticks run back to back on the calling thread and are never interrupted;
    only the wait between ticks reacts to the shutdown signal.
    """

    def __init__(self, client: LastFMClient, emitter: HeartbeatEmitter,
                 interval: float, shutdown: ShutdownSignal):
        self.client = client
        self.emitter = emitter
        self.interval = interval
        self.shutdown = shutdown

    def tick(self) -> bool:
        """One fetch → extract → emit cycle. True if a heartbeat was sent."""
        try:
            doc = self.client.get_recent_tracks(limit=1)
        except LastFMError as e:
            log.warning("Last.fm fetch failed: %s", e)
            return False

        snapshot = extract_now_playing(doc)
        if snapshot is None:
            log.debug("No song is currently playing")
            return False

        log.debug("Track: %s - %s", snapshot.title, snapshot.artist)
        return self.emitter.emit(snapshot)

    def run(self) -> int:
        """Poll until shutdown is requested. Returns the number of ticks run."""
        log.info("Polling Last.fm every %ss", self.interval)
        ticks = 0
        while True:
            started = time.monotonic()
            self.tick()
            ticks += 1
            elapsed = time.monotonic() - started

            if elapsed < self.interval:
                if self.shutdown.wait(self.interval - elapsed):
                    break
            else:
                # Overran the interval: no sleep, just check for a pending stop
                log.debug("Tick took %.1fs (interval %ss)", elapsed, self.interval)
                if self.shutdown.is_set():
                    break

        log.info("Shutdown complete.")
        return ticks

    def serve(self, join_interval: float = 0.5) -> int:
        """run() on a dedicated thread; the calling (main) thread stays free for signal handlers."""
        result, errors = [], []

        def _target():
            try:
                result.append(self.run())
            except Exception as e:
                errors.append(e)

        worker = threading.Thread(target=_target, name="lastfm-poll")
        worker.start()
        while worker.is_alive():
            worker.join(join_interval)
        if errors:
            log.error("Poll loop crashed: %s", errors[0])
            raise errors[0]
        return result[0]
