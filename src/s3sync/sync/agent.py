"""Per-agent sync pipeline.

This module provides:
- ProcessStatus: What happened to a changed path for one agent
- ProcessResult: Result of processing one path
- AgentWorker: Runs match -> key -> upload -> optional delete for one agent
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from s3sync.core.types import (
    DeleteFailedError,
    NonTextPathError,
    PathOutsideRootError,
    PatternMismatchError,
)
from s3sync.sync.keys import derive_key
from s3sync.sync.matcher import PatternMatcher

if TYPE_CHECKING:
    from s3sync.core.config import Agent
    from s3sync.sync.uploader import Uploader

logger = logging.getLogger(__name__)


class ProcessStatus(Enum):
    """Outcome of a successful process() call."""

    NOT_OWNED = auto()  # path is outside the agent's root
    SKIPPED = auto()  # pattern mismatch or non-text path
    UPLOADED = auto()
    DELETED = auto()  # uploaded, then removed locally


@dataclass
class ProcessResult:
    """Result of processing one changed path.

    Attributes:
        path: The changed path.
        status: What happened.
        key: Destination key, when one was derived.
        elapsed_time: Seconds until the upload completed.
    """

    path: Path
    status: ProcessStatus
    key: str | None = None
    elapsed_time: float = 0.0

    @property
    def uploaded(self) -> bool:
        return self.status in (ProcessStatus.UPLOADED, ProcessStatus.DELETED)


class AgentWorker:
    """Runs one agent's pipeline for changed files.

    The worker holds no mutable state, so one instance may serve
    several threads.

    Usage:
        worker = AgentWorker(agent, uploader)
        result = worker.process(Path("/data/sub/file.txt"))
    """

    def __init__(self, agent: Agent, uploader: Uploader) -> None:
        """Initialize the worker.

        Args:
            agent: Agent configuration.
            uploader: Uploader used for every transfer.
        """
        self._agent = agent
        self._uploader = uploader
        self._matcher = PatternMatcher(agent.pattern)

    @property
    def agent(self) -> Agent:
        return self._agent

    def object_key(self, path: Path) -> str:
        """Derive the destination key of a path for this agent."""
        return derive_key(path, self._agent, self._matcher)

    def process(self, path: Path) -> ProcessResult:
        """Process one settled change.

        Args:
            path: Absolute path of the changed file.

        Returns:
            ProcessResult describing what happened.

        Raises:
            FileUnavailableError: The file vanished before it could be read.
            UploadRejectedError: The object store refused the upload.
            DeleteFailedError: Upload succeeded but the local file remains.
        """
        start_time = time.time()
        agent = self._agent

        if not agent.owns(path):
            logger.debug("%s: not under %s, ignoring %s", agent.name, agent.watch_root, path)
            return ProcessResult(path=path, status=ProcessStatus.NOT_OWNED)

        try:
            key = self.object_key(path)
        except PathOutsideRootError:
            logger.debug("%s: not under %s, ignoring %s", agent.name, agent.watch_root, path)
            return ProcessResult(path=path, status=ProcessStatus.NOT_OWNED)
        except PatternMismatchError as e:
            logger.debug("%s: skipping %s (%s)", agent.name, path, e)
            return ProcessResult(path=path, status=ProcessStatus.SKIPPED, key=e.key)
        except NonTextPathError:
            logger.warning("%s: skipping non-text path %r", agent.name, str(path))
            return ProcessResult(path=path, status=ProcessStatus.SKIPPED)

        logger.info("%s: uploading %s to s3://%s/%s", agent.name, path, agent.bucket, key)
        self._uploader.upload(path, key, agent)
        result = ProcessResult(
            path=path,
            status=ProcessStatus.UPLOADED,
            key=key,
            elapsed_time=time.time() - start_time,
        )
        logger.info(
            "%s: uploaded s3://%s/%s in %.2fs",
            agent.name,
            agent.bucket,
            key,
            result.elapsed_time,
        )

        if agent.delete_after_upload:
            self._delete_source(path)
            result.status = ProcessStatus.DELETED
        else:
            logger.debug("%s: keeping source %s", agent.name, path)

        return result

    def _delete_source(self, path: Path) -> None:
        """Remove the local file after a successful upload."""
        try:
            path.unlink()
        except FileNotFoundError:
            # Another agent sharing the root may have removed it first
            logger.debug("%s: source already removed: %s", self._agent.name, path)
            return
        except OSError as e:
            raise DeleteFailedError(f"Uploaded {path} but could not remove it: {e}") from e
        logger.info("%s: removed source %s", self._agent.name, path)

    def __repr__(self) -> str:
        return f"AgentWorker({self._agent.name!r})"
