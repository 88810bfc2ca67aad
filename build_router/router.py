"""Build routing.

This module ties the derivation engine to the CI platform:
- Builds started by the router skip routing
- The first derived record is applied to the running build
- Every other record starts a new build, strictly one after another
- Slugs of the started builds are exported for later steps

Any failure stops the invocation; builds already started are left running.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from build_router.config import Settings
from build_router.errors import ConfigurationError
from build_router.export import (
    Exporter,
    apply_to_current_build,
    envman_export,
    export_started_builds,
    record_environments,
)
from build_router.orchestrator.client import BitriseApp
from build_router.orchestrator.models import BuildDescriptor, StartedBuild
from build_router.params.assembler import (
    BuildContext,
    BuildParameterRecord,
    CommitResolver,
    generate_build_params,
)

logger = logging.getLogger(__name__)

BUILD_URL_TEMPLATE = "https://app.bitrise.io/build/{slug}"

AppFactory = Callable[[Settings], BitriseApp]


@dataclass
class RouterResult:
    """Outcome of one router invocation.

    Attributes:
        bypassed: True when the build was started by the router itself.
        records: Derived parameter records, running build first.
        started: Builds started for records 1..N, in order.
    """

    bypassed: bool = False
    records: list[BuildParameterRecord] = field(default_factory=list)
    started: list[StartedBuild] = field(default_factory=list)

    @property
    def build_slugs(self) -> list[str]:
        return [build.build_slug for build in self.started]


def default_app_factory(settings: Settings) -> BitriseApp:
    """Create the API client from settings."""
    return BitriseApp(
        app_slug=settings.app_slug,
        access_token=settings.access_token.get_secret_value(),
        base_url=settings.api_base_url,
        timeout=float(settings.api_timeout),
    )


def inject_build_params(
    build: BuildDescriptor, record: BuildParameterRecord
) -> dict[str, Any]:
    """Trigger params of ``build`` with the record's tag and commit applied."""
    params = dict(build.original_build_params)
    if record.new_tag:
        params["tag"] = record.new_tag
    if record.new_commit_hash:
        params["commit_hash"] = record.new_commit_hash
    params["triggered_by"] = f"Build #{build.build_number}"
    return params


def plan_builds(
    settings: Settings, resolve_commit: CommitResolver | None = None
) -> list[BuildParameterRecord]:
    """Derive parameter records without touching the CI platform.

    Raises:
        ConfigurationError: If the environment cannot be turned into records.
    """
    settings.require("supported_regions")
    context = BuildContext.from_settings(settings)
    return generate_build_params(context, resolve_commit=resolve_commit)


def route_builds(
    settings: Settings,
    app_factory: AppFactory = default_app_factory,
    exporter: Exporter = envman_export,
    resolve_commit: CommitResolver | None = None,
) -> RouterResult:
    """Apply the first record locally and start a build for every other one.

    Args:
        settings: CI environment.
        app_factory: Creates the orchestrator client.
        exporter: Writes a key/value into the running build's environment.
        resolve_commit: Maps a tag to a commit; see generate_build_params.

    Returns:
        RouterResult describing what was done.

    Raises:
        ConfigurationError: If the environment is incomplete or malformed.
        OrchestratorError: If reading or starting a build fails.
        ExportError: If exporting a value fails.
    """
    if settings.parent_build:
        logger.info("Child build of %s, nothing to route", settings.parent_build)
        return RouterResult(bypassed=True)

    logger.info("Routing build %s", settings.build_number or settings.build_slug)
    settings.require(
        "app_slug", "build_slug", "build_number", "access_token", "supported_regions"
    )
    context = BuildContext.from_settings(settings)

    result = RouterResult(
        records=generate_build_params(context, resolve_commit=resolve_commit)
    )
    current, *others = result.records
    if others and not settings.triggered_workflow:
        raise ConfigurationError("BITRISE_TRIGGERED_WORKFLOW_ID is not set")

    apply_to_current_build(current, settings.git_tag, exporter=exporter)

    if others:
        with app_factory(settings) as app:
            build = app.get_build(settings.build_slug)
            for record in others:
                started = app.start_build(
                    settings.triggered_workflow,
                    inject_build_params(build, record),
                    settings.build_number,
                    record_environments(record),
                )
                result.started.append(started)
                logger.info(
                    "- %s started (%s)",
                    started.triggered_workflow,
                    BUILD_URL_TEMPLATE.format(slug=started.build_slug),
                )

    export_started_builds(result.build_slugs, exporter=exporter)
    return result


__all__ = [
    "BUILD_URL_TEMPLATE",
    "RouterResult",
    "default_app_factory",
    "inject_build_params",
    "plan_builds",
    "route_builds",
]
