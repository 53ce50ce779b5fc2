"""Object key derivation.

Turns an absolute changed path into the key it is stored under:
strip the agent's watch root, convert to a "/"-separated text key,
filter it through the agent's pattern, then prepend the key prefix.
"""

from __future__ import annotations

import logging
from pathlib import Path

from s3sync.core.config import Agent
from s3sync.core.types import NonTextPathError, PathOutsideRootError, PatternMismatchError
from s3sync.sync.matcher import PatternMatcher

logger = logging.getLogger(__name__)


def relative_key(event_path: Path, root: Path) -> str:
    """Express a path below root as a "/"-separated key.

    Raises:
        PathOutsideRootError: If event_path is not strictly below root.
        NonTextPathError: If a component is not valid text.
    """
    try:
        rel_path = event_path.relative_to(root)
    except ValueError:
        raise PathOutsideRootError(event_path, root) from None
    if not rel_path.parts:
        raise PathOutsideRootError(event_path, root)

    key = rel_path.as_posix()
    # Undecodable bytes surface as lone surrogates (PEP 383)
    try:
        key.encode("utf-8")
    except UnicodeEncodeError:
        raise NonTextPathError(event_path) from None
    return key


def derive_key(
    event_path: Path,
    agent: Agent,
    matcher: PatternMatcher | None = None,
) -> str:
    """Derive the destination key of a changed file for one agent.

    Args:
        event_path: Absolute path of the changed file.
        agent: Agent whose root, pattern and prefix apply.
        matcher: Pre-built matcher for agent.pattern (built if omitted).

    Returns:
        The final object key.

    Raises:
        PathOutsideRootError: Path is not under agent.watch_root.
        NonTextPathError: Path is not representable as text.
        PatternMismatchError: Relative key does not match the pattern.
    """
    key = relative_key(event_path, agent.watch_root)
    logger.debug("Proposed object key: %r", key)

    if matcher is None:
        matcher = PatternMatcher(agent.pattern)
    if not matcher.matches(key):
        raise PatternMismatchError(event_path, key, matcher.pattern)

    if agent.key_prefix:
        key = f"{agent.key_prefix}{key}"
    logger.debug("Final object key: %r", key)
    return key
