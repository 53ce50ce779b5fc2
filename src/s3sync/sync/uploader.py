"""Object store uploads.

This module provides:
- Uploader: Abstract single-shot upload interface
- S3Uploader: boto3 implementation with per-profile client caching
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from s3sync.core.config import DEFAULT_PROFILE
from s3sync.core.types import FileUnavailableError, UploadRejectedError

if TYPE_CHECKING:
    from typing import Any

    from s3sync.core.config import Agent

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds
DEFAULT_READ_TIMEOUT = 60.0  # seconds


class Uploader(ABC):
    """Transfers one local file to one object, once."""

    @abstractmethod
    def upload(self, local_path: Path, key: str, agent: Agent) -> None:
        """Upload a file's bytes to agent.bucket under key.

        Implementations never retry.

        Args:
            local_path: File to read.
            key: Destination object key.
            agent: Agent supplying bucket, profile and region.

        Raises:
            FileUnavailableError: If the file cannot be opened.
            UploadRejectedError: If the store rejects the request or it fails in transit.
        """


class S3Uploader(Uploader):
    """Uploads with boto3 put_object.

    One client is created per (profile, region) pair and reused. Requests are
    bounded by connect/read timeouts and are attempted exactly once.
    """

    def __init__(
        self,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        endpoint_url: str | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            connect_timeout: Seconds to wait for a connection.
            read_timeout: Seconds to wait for a response.
            endpoint_url: Custom endpoint (MinIO, OVH, ...).
        """
        self._config = Config(
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            retries={"total_max_attempts": 1, "mode": "standard"},
        )
        self._endpoint_url = endpoint_url
        self._clients: dict[tuple[str, str | None], Any] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _session(agent: Agent, region: str | None = None) -> boto3.Session:
        """Build a session for an agent's profile.

        The default profile means the ambient credential chain, which also
        works when no shared config file exists.
        """
        profile = None if agent.profile == DEFAULT_PROFILE else agent.profile
        return boto3.Session(profile_name=profile, region_name=region)

    def resolve_region(self, agent: Agent) -> str | None:
        """Get the effective region for an agent.

        Explicit override first, then whatever the profile's
        credential/region chain resolves to.
        """
        if agent.region:
            return agent.region
        region: str | None = self._session(agent).region_name
        return region

    def _client(self, agent: Agent) -> Any:
        """Get (or create) the client for an agent's profile and region."""
        cache_key = (agent.profile, agent.region)
        with self._lock:
            client = self._clients.get(cache_key)
            if client is None:
                region = self.resolve_region(agent)
                client = self._session(agent, region).client(
                    "s3",
                    endpoint_url=self._endpoint_url,
                    config=self._config,
                )
                logger.debug(
                    "Created S3 client for profile=%s region=%s", agent.profile, region
                )
                self._clients[cache_key] = client
            return client

    def upload(self, local_path: Path, key: str, agent: Agent) -> None:
        """Upload a file with a single put_object request."""
        try:
            body = local_path.open("rb")
        except OSError as e:
            raise FileUnavailableError(f"Cannot open {local_path}: {e}") from e

        with body:
            try:
                client = self._client(agent)
                client.put_object(Bucket=agent.bucket, Key=key, Body=body)
            except ClientError as e:
                error = e.response.get("Error", {})
                detail = f"{error.get('Code', 'Unknown')}: {error.get('Message', e)}"
                raise UploadRejectedError(agent.bucket, key, detail) from e
            except BotoCoreError as e:
                raise UploadRejectedError(agent.bucket, key, str(e)) from e
