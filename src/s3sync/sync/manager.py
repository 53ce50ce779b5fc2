"""Top-level dispatch of debounced changes to agents.

Architecture:
    FileWatcher (one per root) -> BatchQueue -> Manager -> AgentWorker (one per agent)

Every settled change to an existing regular file is offered to every agent.
Each agent decides on its own whether the path is under its root and matches
its pattern, so agents with overlapping roots and different buckets all get
their copy. A failure in one agent is recorded and logged; it never stops the
other agents or the following events.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from s3sync.core.types import ChangeEvent, ConfigurationError, EventBatch, S3SyncError
from s3sync.sync.agent import AgentWorker, ProcessResult, ProcessStatus
from s3sync.sync.registry import WatcherRegistry, WatchPlan, plan_watches
from s3sync.sync.uploader import S3Uploader, Uploader

if TYPE_CHECKING:
    from s3sync.core.config import Agent

logger = logging.getLogger(__name__)

# Seconds between stop checks while waiting for batches
POLL_INTERVAL = 1.0


@dataclass
class AgentOutcome:
    """Result of offering one change to one agent.

    Attributes:
        agent: The agent the change was offered to.
        path: The changed path.
        result: Process result when the pipeline completed.
        error: The failure, when it did not.
    """

    agent: Agent
    path: Path
    result: ProcessResult | None = None
    error: Exception | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class DispatchStats:
    """Counters over everything the Manager dispatched."""

    events: int = 0
    ignored: int = 0
    uploaded: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, outcome: AgentOutcome) -> None:
        """Count one agent outcome."""
        if outcome.error is not None:
            self.failed += 1
            return
        if outcome.result is None:
            return
        status = outcome.result.status
        if status is ProcessStatus.SKIPPED:
            self.skipped += 1
        elif status is ProcessStatus.UPLOADED:
            self.uploaded += 1
        elif status is ProcessStatus.DELETED:
            self.uploaded += 1
            self.deleted += 1


class Manager:
    """Coordinates watches and agents.

    Usage:
        manager = Manager(agents)
        manager.run()  # blocks until stop() or KeyboardInterrupt
    """

    def __init__(
        self,
        agents: Sequence[Agent],
        uploader: Uploader | None = None,
        max_workers: int = 1,
    ) -> None:
        """Initialize the manager.

        Args:
            agents: Every configured agent; read-only from here on.
            uploader: Uploader shared by all agents (S3Uploader if omitted).
            max_workers: Agents processed concurrently per event (1 = sequential).

        Raises:
            ConfigurationError: If there are no agents or max_workers < 1.
        """
        if not agents:
            raise ConfigurationError("No agents configured")
        if max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {max_workers}")

        self._agents: tuple[Agent, ...] = tuple(agents)
        self._uploader = uploader if uploader is not None else S3Uploader()
        self._workers = tuple(AgentWorker(agent, self._uploader) for agent in self._agents)
        self._max_workers = max_workers

        self._stats = DispatchStats()
        self._stats_lock = threading.Lock()
        self._stop_requested = threading.Event()

    @property
    def agents(self) -> tuple[Agent, ...]:
        return self._agents

    @property
    def stats(self) -> DispatchStats:
        return self._stats

    def watch_plans(self) -> list[WatchPlan]:
        """Get the physical watches the agents need, one per distinct root."""
        return list(plan_watches(self._agents).values())

    @staticmethod
    def is_actionable(event: ChangeEvent) -> bool:
        """Check whether an event should be offered to agents.

        Only settled changes to paths that still exist as regular files
        qualify; removals, directories and in-progress writes do not.
        """
        if not event.is_settled:
            return False
        return event.path.is_file()

    def _run_worker(self, worker: AgentWorker, path: Path) -> AgentOutcome:
        """Run one agent's pipeline, capturing any failure."""
        outcome = AgentOutcome(agent=worker.agent, path=path)
        try:
            outcome.result = worker.process(path)
        except S3SyncError as e:
            outcome.error = e
            logger.error("%s: failed to process %s: %s", worker.agent.name, path, e)
        except Exception as e:
            outcome.error = e
            logger.exception("%s: unexpected error processing %s", worker.agent.name, path)
        return outcome

    def process_event(self, event: ChangeEvent) -> list[AgentOutcome]:
        """Offer one change to every agent.

        Args:
            event: A debounced change.

        Returns:
            One outcome per agent, in agent order; empty if the event
            was not actionable.
        """
        with self._stats_lock:
            self._stats.events += 1

        if not self.is_actionable(event):
            logger.debug("Ignoring %s change to %s", event.kind.value, event.path)
            with self._stats_lock:
                self._stats.ignored += 1
            return []

        logger.debug("Process: %s", event.path)
        if self._max_workers > 1 and len(self._workers) > 1:
            with ThreadPoolExecutor(
                max_workers=min(self._max_workers, len(self._workers)),
                thread_name_prefix="agent",
            ) as pool:
                outcomes = list(
                    pool.map(lambda worker: self._run_worker(worker, event.path), self._workers)
                )
        else:
            outcomes = [self._run_worker(worker, event.path) for worker in self._workers]

        with self._stats_lock:
            for outcome in outcomes:
                self._stats.record(outcome)
        return outcomes

    def process_batch(self, batch: EventBatch) -> list[AgentOutcome]:
        """Process every event of a batch in order."""
        logger.debug("Received %d events from %s", len(batch), batch.root)
        outcomes: list[AgentOutcome] = []
        for event in batch:
            outcomes.extend(self.process_event(event))
        return outcomes

    def run(self, registry: WatcherRegistry | None = None) -> DispatchStats:
        """Watch every root and dispatch batches until stopped.

        Args:
            registry: Registry to use (built from the agents if omitted).

        Returns:
            Counters for the whole run.

        Raises:
            WatchError: If a watch cannot be started.
        """
        if registry is None:
            registry = WatcherRegistry(self._agents)

        with registry:
            queue = registry.queue
            while not self._stop_requested.is_set():
                batch = queue.get(timeout=POLL_INTERVAL)
                if batch is None:
                    if queue.is_closed:
                        break
                    continue
                self.process_batch(batch)

        return self._stats

    def stop(self) -> None:
        """Ask run() to return; safe to call from a signal handler."""
        self._stop_requested.set()
