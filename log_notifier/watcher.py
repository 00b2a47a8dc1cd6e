"""ChangeWatcher: turn filesystem writes into notifications.

The watchdog observer thread only filters events and enqueues them; all
fetching, parsing and sending happens in the thread that calls ``run()``,
one event at a time and in arrival order.
"""

import logging
import os
import queue
import threading
from enum import Enum
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from log_notifier.errors import (
    FetchError,
    MissingFieldError,
    NotifierError,
    NotifyError,
    ParseError,
    SetupError,
)
from log_notifier.models import WatchTarget
from log_notifier.notifier import Notifier
from log_notifier.parser import parse_content
from log_notifier.stats import PipelineStats

logger = logging.getLogger(__name__)

_STOP = None


class WatcherState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRING = "firing"
    STOPPED = "stopped"


def _signature(path: str) -> tuple[int, int] | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


class _WriteEventHandler(FileSystemEventHandler):
    """Forwards content writes on the target to a queue.

    A modified event that leaves both mtime and size unchanged is an
    attribute-only change and is dropped.
    """

    def __init__(self, target: str, target_is_dir: bool, q: queue.Queue):
        super().__init__()
        self._target = target
        self._target_is_dir = target_is_dir
        self._queue = q
        self._signatures: dict[str, tuple[int, int]] = {}
        if target_is_dir:
            with os.scandir(target) as entries:
                paths = [os.path.join(target, e.name) for e in entries if e.is_file()]
        else:
            paths = [target]
        for path in paths:
            sig = _signature(path)
            if sig is not None:
                self._signatures[path] = sig

    def _is_watched(self, path: str) -> bool:
        if self._target_is_dir:
            return os.path.dirname(path) == self._target
        return path == self._target

    def on_modified(self, event):
        if event.is_directory:
            return
        path = os.path.abspath(os.fsdecode(event.src_path))
        if not self._is_watched(path):
            return

        sig = _signature(path)
        if sig is None:
            return
        if self._signatures.get(path) == sig:
            logger.debug("Ignoring metadata-only change: %s", path)
            return
        self._signatures[path] = sig
        self._queue.put(path)


class ChangeWatcher:
    """IDLE → ARMED → (write) FIRING → ARMED ... → STOPPED.

    Use as a context manager so the observer is always released:

        with ChangeWatcher(target, fetch, notifier) as watcher:
            watcher.run()
    """

    def __init__(self, target: WatchTarget, fetch: Callable[[], str], notifier: Notifier,
                 stats: PipelineStats | None = None,
                 shutdown_event: threading.Event | None = None,
                 poll_interval: float = 0.5,
                 observer_factory=Observer):
        self._target = target
        self._fetch = fetch
        self._notifier = notifier
        self._stats = stats or PipelineStats()
        self._shutdown = shutdown_event or threading.Event()
        self._poll_interval = poll_interval
        self._observer_factory = observer_factory
        self._observer = None
        self._queue: queue.Queue = queue.Queue()
        self._state = WatcherState.IDLE

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def stats(self) -> PipelineStats:
        return self._stats

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def start(self) -> None:
        """Subscribe to the target path. Raises SetupError on failure."""
        if self._state is not WatcherState.IDLE:
            raise SetupError(f"Watcher cannot start from state {self._state.value}")

        path = os.path.abspath(self._target.path)
        if os.path.isdir(path):
            watch_dir, is_dir = path, True
        elif os.path.isfile(path):
            watch_dir, is_dir = os.path.dirname(path), False
        else:
            self._state = WatcherState.STOPPED
            raise SetupError(f"Watched path does not exist: {path}")

        handler = _WriteEventHandler(path, is_dir, self._queue)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, watch_dir, recursive=False)
            observer.start()
        except (OSError, RuntimeError) as e:
            self._state = WatcherState.STOPPED
            raise SetupError(f"Cannot watch {path}: {e}") from e

        self._observer = observer
        self._state = WatcherState.ARMED
        logger.info("Watching %s", path)

    def run(self) -> None:
        """Drain change events until stop() is called or the observer dies."""
        while not self._shutdown.is_set():
            try:
                path = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                if self._observer is not None and not self._observer.is_alive():
                    logger.error("Filesystem observer stopped unexpectedly")
                    break
                continue

            if path is _STOP:
                break

            stop_requested = False
            while True:
                try:
                    extra = self._queue.get_nowait()
                except queue.Empty:
                    break
                if extra is _STOP:
                    stop_requested = True
                    break
                self._stats.incr("coalesced")
                path = extra

            self.handle_change(path)
            if stop_requested:
                break

    def handle_change(self, path: str) -> None:
        """Fetch, parse and notify for one change event. Never raises."""
        previous = self._state
        self._state = WatcherState.FIRING
        self._stats.incr("events")
        logger.info("Modified file: %s", path)
        try:
            content = self._fetch()
            try:
                record = parse_content(content)
            except MissingFieldError as e:
                if e.record is None or {"ts", "status"} & set(e.fields):
                    raise
                self._stats.incr("partial")
                logger.warning("Sending with placeholders: %s | line=%r", e, e.line)
                record = e.record
            if self._notifier.notify(record):
                self._stats.incr("sent")
            else:
                self._stats.incr("suppressed")
        except FetchError as e:
            self._stats.incr("fetch_errors")
            logger.warning("Fetch failed (exit_code=%s): %s", e.exit_code, e)
        except ParseError as e:
            self._stats.incr("parse_errors")
            logger.warning("Parse failed: %s | line=%r", e, e.line)
        except NotifyError as e:
            self._stats.incr("delivery_errors")
            logger.warning("Delivery failed (status=%s): %s",
                           getattr(e, "status_code", None), e)
        except NotifierError as e:
            logger.warning("Event dropped: %s", e)
        except Exception:
            logger.exception("Unexpected error while handling change on %s", path)
        finally:
            if self._state is WatcherState.FIRING:
                self._state = previous

    def stop(self) -> None:
        """Ask run() to return. From a signal handler, set the shutdown event instead."""
        self._shutdown.set()
        self._queue.put(_STOP)

    def close(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None
        self._state = WatcherState.STOPPED
