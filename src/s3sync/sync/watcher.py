"""File system watcher with per-path debouncing.

This module provides:
- FileWatcher: Watches one root with watchdog and delivers EventBatch values
- DebouncedEventHandler: Coalesces raw events into settled/continuous changes

Debouncing works per path. A tick runs every window/4 seconds:
- a path with no event for a whole window is emitted as SETTLED and forgotten
- a path that has been busy for a whole window is emitted as CONTINUOUS and
  stays tracked until it finally settles
Everything emitted on one tick is delivered as a single batch.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from s3sync.core.types import ChangeEvent, ChangeKind, EventBatch, WatchError

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from s3sync.core.config import WatchSettings

logger = logging.getLogger(__name__)

BatchCallback = Callable[[EventBatch], object]

# Tick rate relative to the debounce window
TICKS_PER_WINDOW = 4


@dataclass
class PendingChange:
    """A path with unreported activity."""

    path: Path
    first_seen: float
    last_seen: float


def _event_path(raw: str | bytes) -> Path:
    # fsdecode keeps undecodable bytes as surrogates so key derivation can reject them
    return Path(os.fsdecode(raw))


class DebouncedEventHandler(FileSystemEventHandler):
    """Event handler that debounces file events into batches."""

    def __init__(
        self,
        root: Path,
        deliver: BatchCallback,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the debounced handler.

        Args:
            root: Directory being watched.
            deliver: Called with each non-empty batch.
            window: Debounce window in seconds.
            clock: Monotonic time source.
        """
        super().__init__()
        self._root = root
        self._deliver = deliver
        self._window = window
        self._clock = clock

        # Pending changes keyed by path, in arrival order
        self._pending: dict[Path, PendingChange] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def window(self) -> float:
        return self._window

    @property
    def tick_interval(self) -> float:
        return self._window / TICKS_PER_WINDOW

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def record(self, path: Path, now: float | None = None) -> None:
        """Note activity on a path."""
        if now is None:
            now = self._clock()
        with self._lock:
            pending = self._pending.get(path)
            if pending is None:
                self._pending[path] = PendingChange(path=path, first_seen=now, last_seen=now)
            else:
                pending.last_seen = now

    def collect(self, now: float | None = None) -> EventBatch | None:
        """Take every change that is due at time now.

        Returns:
            The batch of due changes, or None if nothing is due.
        """
        if now is None:
            now = self._clock()

        events: list[ChangeEvent] = []
        with self._lock:
            for path, pending in list(self._pending.items()):
                if now - pending.last_seen >= self._window:
                    events.append(ChangeEvent(path=path, kind=ChangeKind.SETTLED))
                    del self._pending[path]
                elif now - pending.first_seen >= self._window:
                    events.append(ChangeEvent(path=path, kind=ChangeKind.CONTINUOUS))
                    pending.first_seen = now

        if not events:
            return None
        return EventBatch(root=self._root, events=tuple(events))

    def flush(self, now: float | None = None) -> EventBatch | None:
        """Collect due changes and deliver them outside the lock."""
        batch = self.collect(now)
        if batch is not None:
            logger.debug("Delivering %d events from %s", len(batch), self._root)
            self._deliver(batch)
        return batch

    def _run(self) -> None:
        while not self._stop_event.wait(self.tick_interval):
            try:
                self.flush()
            except Exception:
                logger.exception("Failed to deliver events from %s", self._root)

    def start(self) -> None:
        """Start the tick thread."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"debounce:{self._root.name or self._root}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop the tick thread; pending changes are dropped."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        with self._lock:
            self._pending.clear()

    def _handle_event(self, event: FileSystemEvent) -> None:
        """Record the paths touched by a raw event."""
        # Skip directories - we only sync files
        if event.is_directory:
            return

        self.record(_event_path(event.src_path))
        dest = getattr(event, "dest_path", None)
        if dest:
            self.record(_event_path(dest))

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle created event."""
        self._handle_event(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle modified event."""
        self._handle_event(event)

    def on_closed(self, event: FileSystemEvent) -> None:
        """Handle closed-after-write event."""
        self._handle_event(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle deleted event."""
        self._handle_event(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle moved event."""
        self._handle_event(event)


class FileWatcher:
    """Watches one directory and delivers debounced batches.

    A single FileWatcher may serve several agents that share its root;
    its settings are the merge of theirs.
    """

    def __init__(
        self,
        root: Path,
        settings: WatchSettings,
        deliver: BatchCallback,
    ) -> None:
        """Initialize the file watcher.

        Args:
            root: Directory to watch.
            settings: Effective window and recursion for this root.
            deliver: Called with each batch (e.g. BatchQueue.put).

        Raises:
            WatchError: If root is not an existing directory.
        """
        self._root = Path(root)
        if not self._root.is_dir():
            raise WatchError(f"Watch path must be a directory: {root}")

        self._settings = settings
        self._handler = DebouncedEventHandler(
            root=self._root,
            deliver=deliver,
            window=settings.window,
        )
        self._observer: BaseObserver | None = None
        self._running = False

    @property
    def root(self) -> Path:
        """Get the watched directory path."""
        return self._root

    @property
    def settings(self) -> WatchSettings:
        return self._settings

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching for changes.

        Raises:
            WatchError: If the OS watch cannot be established.
        """
        if self._running:
            return

        # Observer threads are single-use
        observer = Observer()
        try:
            observer.schedule(self._handler, str(self._root), recursive=self._settings.recursive)
            observer.start()
        except OSError as e:
            raise WatchError(f"Cannot watch {self._root}: {e}") from e
        self._observer = observer
        self._handler.start()
        self._running = True
        logger.info(
            "Watching %s (window=%ds, recursive=%s)",
            self._root,
            self._settings.window,
            self._settings.recursive,
        )

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return

        self._handler.stop()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
        self._running = False
        logger.debug("Stopped watching %s", self._root)

    def __enter__(self) -> FileWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
