"""Watching, debouncing and dispatching file changes to S3.

Architecture:
    FileWatcher (one per root) -> BatchQueue -> Manager -> AgentWorker

Components:
- **WatcherRegistry**: Groups agents by root, merges their WatchSettings and
  starts one FileWatcher per distinct root
- **FileWatcher**: watchdog observer plus per-path debouncing; emits
  EventBatch values of settled/continuous changes
- **BatchQueue**: Many-producer, single-consumer delivery channel
- **Manager**: Drains the queue and offers every settled file change to
  every agent, isolating per-agent failures
- **AgentWorker**: PatternMatcher -> derive_key -> Uploader -> optional delete

All public symbols are re-exported here.
"""

from s3sync.sync.agent import AgentWorker, ProcessResult, ProcessStatus
from s3sync.sync.keys import derive_key, relative_key
from s3sync.sync.manager import AgentOutcome, DispatchStats, Manager
from s3sync.sync.matcher import PatternMatcher, compile_pattern
from s3sync.sync.queue import BatchQueue
from s3sync.sync.registry import WatcherRegistry, WatchPlan, plan_watches
from s3sync.sync.uploader import S3Uploader, Uploader
from s3sync.sync.watcher import DebouncedEventHandler, FileWatcher

__all__ = [
    # Agent pipeline
    "AgentWorker",
    "PatternMatcher",
    "ProcessResult",
    "ProcessStatus",
    "compile_pattern",
    "derive_key",
    "relative_key",
    # Uploads
    "S3Uploader",
    "Uploader",
    # Watching
    "BatchQueue",
    "DebouncedEventHandler",
    "FileWatcher",
    "WatchPlan",
    "WatcherRegistry",
    "plan_watches",
    # Dispatch
    "AgentOutcome",
    "DispatchStats",
    "Manager",
]
