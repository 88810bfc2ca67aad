"""Commit lookup for tags.

Child builds are started from the commit a tag points to, so every record
carries that commit unless the CI environment already pins one.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


def rev_parse_tag(tag: str, cwd: str | Path | None = None) -> str:
    """Resolve ``tag`` to a commit hash with ``git rev-parse``.

    Args:
        tag: Tag to resolve.
        cwd: Repository checkout (uses the current directory if None).

    Returns:
        Commit hash, or an empty string if the lookup fails.
    """
    if not tag:
        return ""

    cmd = ["git", "rev-parse", tag]
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not run git rev-parse for %s: %s", tag, e)
        return ""

    if result.returncode != 0:
        logger.warning(
            "git rev-parse %s failed with exit code %d: %s",
            tag,
            result.returncode,
            result.stderr.strip(),
        )
        return ""

    return result.stdout.strip()


__all__ = ["rev_parse_tag"]
