"""Delivery channel between watches and the dispatcher.

This module provides:
- BatchQueue: Thread-safe FIFO of EventBatch values

Every watch thread puts its batches here; the Manager is the only consumer.
Batches from one watch keep their order. Batches from different watches
interleave in the order they become ready.

Usage:
    queue = BatchQueue()
    watcher = FileWatcher(root, settings, deliver=queue.put)
    watcher.start()
    for batch in queue:
        ...
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from s3sync.core.types import EventBatch

logger = logging.getLogger(__name__)


class BatchQueue:
    """Thread-safe FIFO queue of event batches with close support.

    Attributes:
        max_size: Maximum number of pending batches (0 = unlimited)
    """

    def __init__(self, max_size: int = 0) -> None:
        """Initialize the queue.

        Args:
            max_size: Maximum number of pending batches (0 = unlimited)
        """
        self._lock = threading.RLock()
        self._not_empty = threading.Condition(self._lock)
        self._batches: deque[EventBatch] = deque()
        self._max_size = max_size
        self._closed = False

    def put(self, batch: EventBatch) -> bool:
        """Append a batch.

        Args:
            batch: The batch to deliver

        Returns:
            True if the batch was queued, False if the queue is full or closed
        """
        with self._lock:
            if self._closed:
                logger.debug("Queue closed, dropping batch from %s", batch.root)
                return False

            if self._max_size > 0 and len(self._batches) >= self._max_size:
                logger.warning(
                    "Batch queue full (max_size=%d), dropping %d events from %s",
                    self._max_size,
                    len(batch),
                    batch.root,
                )
                return False

            self._batches.append(batch)
            self._not_empty.notify()
            logger.debug(
                "Queued batch of %d events from %s (queue size: %d)",
                len(batch),
                batch.root,
                len(self._batches),
            )
            return True

    def get(self, timeout: float | None = None) -> EventBatch | None:
        """Get the oldest batch.

        Blocks until a batch is available, the timeout expires or the queue
        is closed. Batches queued before close() are still handed out.

        Args:
            timeout: Maximum seconds to wait (None = wait forever)

        Returns:
            The oldest batch, or None on timeout or when closed and drained
        """
        with self._not_empty:
            deadline = None if timeout is None else time.monotonic() + timeout

            while not self._batches and not self._closed:
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._not_empty.wait(timeout=remaining)
                else:
                    self._not_empty.wait()

            if not self._batches:
                return None

            return self._batches.popleft()

    def get_nowait(self) -> EventBatch | None:
        """Get a batch without blocking."""
        return self.get(timeout=0)

    def close(self) -> None:
        """Close the queue and wake up the consumer."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            logger.debug("Batch queue closed")

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._batches)

    def __iter__(self) -> Iterator[EventBatch]:
        """Yield batches until the queue is closed and drained."""
        while True:
            batch = self.get()
            if batch is None:
                return
            yield batch
