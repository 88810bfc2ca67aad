"""Exporting build parameters to the CI environment.

The running build receives its parameters through ``envman``, Bitrise's
environment store shared between steps. Started builds receive the same
keys as env bindings on the start request.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable

from build_router.errors import ExportError
from build_router.orchestrator.models import Environment
from build_router.params.assembler import BuildParameterRecord

logger = logging.getLogger(__name__)

ENVMAN_TIMEOUT = 30

GIT_TAG_ENV = "BITRISE_GIT_TAG"
GIT_COMMIT_ENV = "BITRISE_GIT_COMMIT"
STARTED_BUILD_SLUGS_ENV = "ROUTER_STARTED_BUILD_SLUGS"

# Record field -> env key. new_tag and new_commit_hash are applied through
# GIT_TAG_ENV/GIT_COMMIT_ENV and the trigger params instead.
RECORD_ENV_KEYS: tuple[tuple[str, Callable[[BuildParameterRecord], str]], ...] = (
    ("GRADLE_BUILD", lambda r: r.build_task),
    ("ALPHA_2_CODE", lambda r: r.alpha2_code),
    ("SLACK_FLAG", lambda r: r.slack_flag),
    ("SLACK_REGION", lambda r: r.region),
    ("GMS_XML", lambda r: r.gms_xml_path),
    ("PKG_NAME", lambda r: r.package_name),
    ("BS_SUFFIX", lambda r: r.bs_suffix),
    ("BUILD_TYPE", lambda r: r.build_type.label),
)

Exporter = Callable[[str, str], None]


def record_env_values(record: BuildParameterRecord) -> dict[str, str]:
    """Env key -> value for every exported field of ``record``."""
    return {key: getter(record) for key, getter in RECORD_ENV_KEYS}


def record_environments(record: BuildParameterRecord) -> list[Environment]:
    """Env bindings for a build started with ``record``."""
    return [
        Environment(mapped_to=key, value=value)
        for key, value in record_env_values(record).items()
    ]


def envman_export(key: str, value: str) -> None:
    """Store ``key=value`` with ``envman add`` for the following steps.

    Raises:
        ExportError: If envman is missing or fails.
    """
    cmd = ["envman", "add", "--key", key]
    try:
        result = subprocess.run(
            cmd,
            input=value,
            capture_output=True,
            text=True,
            timeout=ENVMAN_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ExportError(f"Failed to run envman for {key}: {e}", key=key) from e

    if result.returncode != 0:
        raise ExportError(
            f"envman add --key {key} failed with exit code {result.returncode}: "
            f"{result.stderr.strip()}",
            key=key,
        )
    logger.debug("Exported %s", key)


def apply_to_current_build(
    record: BuildParameterRecord,
    current_tag: str | None,
    exporter: Exporter = envman_export,
) -> None:
    """Export ``record`` into the running build.

    A new tag or commit replaces the build's own git references.
    """
    for key, value in record_env_values(record).items():
        exporter(key, value)

    if record.new_tag:
        logger.info("Overriding tag: %s -> %s", current_tag or "", record.new_tag)
        exporter(GIT_TAG_ENV, record.new_tag)
    if record.new_commit_hash:
        logger.info("Overriding commit: %s", record.new_commit_hash)
        exporter(GIT_COMMIT_ENV, record.new_commit_hash)


def export_started_builds(
    build_slugs: list[str], exporter: Exporter = envman_export
) -> None:
    """Export the slugs of started builds, one per line."""
    exporter(STARTED_BUILD_SLUGS_ENV, "\n".join(build_slugs))


__all__ = [
    "GIT_COMMIT_ENV",
    "GIT_TAG_ENV",
    "RECORD_ENV_KEYS",
    "STARTED_BUILD_SLUGS_ENV",
    "apply_to_current_build",
    "envman_export",
    "export_started_builds",
    "record_env_values",
    "record_environments",
]
