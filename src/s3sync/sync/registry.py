"""Physical watch registry.

Agents that share a watch root share one physical watch. The registry groups
agents by root, merges their WatchSettings (shortest window, recursion if any
agent asks for it) and creates exactly one FileWatcher per distinct root, all
delivering into one BatchQueue.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from s3sync.core.config import Agent, WatchSettings
from s3sync.core.types import EventBatch
from s3sync.sync.queue import BatchQueue
from s3sync.sync.watcher import FileWatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WatchPlan:
    """The watch needed for one root and the agents depending on it."""

    root: Path
    settings: WatchSettings
    agents: tuple[Agent, ...] = field(default=())


def plan_watches(agents: Iterable[Agent]) -> dict[Path, WatchPlan]:
    """Group agents by watch root and merge their settings.

    Roots keep the order in which they first appear in agents.

    Returns:
        Mapping from root to its WatchPlan.
    """
    grouped: dict[Path, list[Agent]] = {}
    for agent in agents:
        grouped.setdefault(agent.watch_root, []).append(agent)

    return {
        root: WatchPlan(
            root=root,
            settings=WatchSettings.merge(agent.settings for agent in members),
            agents=tuple(members),
        )
        for root, members in grouped.items()
    }


class WatcherRegistry:
    """Owns one FileWatcher per distinct watch root.

    Usage:
        registry = WatcherRegistry(agents)
        with registry:
            for batch in registry.batches():
                ...
    """

    def __init__(self, agents: Iterable[Agent], queue: BatchQueue | None = None) -> None:
        """Initialize the registry.

        Args:
            agents: All configured agents.
            queue: Delivery channel shared by all watches (created if omitted).
        """
        self._plans = plan_watches(agents)
        self._queue = queue if queue is not None else BatchQueue()
        self._watchers: dict[Path, FileWatcher] = {}

    @property
    def plans(self) -> list[WatchPlan]:
        return list(self._plans.values())

    @property
    def queue(self) -> BatchQueue:
        return self._queue

    @property
    def watchers(self) -> list[FileWatcher]:
        return list(self._watchers.values())

    def settings_for(self, root: Path) -> WatchSettings:
        """Get the effective settings of a root.

        Raises:
            KeyError: If no agent watches root.
        """
        return self._plans[root].settings

    def start(self) -> None:
        """Create and start every watch.

        If one watch fails to start, those already started are stopped and
        the error propagates.

        Raises:
            WatchError: If a root cannot be watched.
        """
        try:
            for plan in self._plans.values():
                if plan.root in self._watchers:
                    continue
                watcher = FileWatcher(plan.root, plan.settings, deliver=self._queue.put)
                watcher.start()
                self._watchers[plan.root] = watcher
                logger.debug(
                    "Watch on %s serves %d agent(s): %s",
                    plan.root,
                    len(plan.agents),
                    ", ".join(agent.name for agent in plan.agents),
                )
        except Exception:
            self.stop()
            raise

    def stop(self) -> None:
        """Stop every watch and close the delivery channel."""
        for watcher in self._watchers.values():
            watcher.stop()
        self._watchers.clear()
        self._queue.close()

    def batches(self) -> Iterator[EventBatch]:
        """Yield delivered batches until the registry is stopped."""
        return iter(self._queue)

    def __enter__(self) -> WatcherRegistry:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()
