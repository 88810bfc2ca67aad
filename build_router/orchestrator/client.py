"""Bitrise API client.

This module handles:
- Fetching the running build and its original trigger parameters
- Starting a new build of a workflow with parameter and env overrides

Errors from the transport, the HTTP status or the response body all surface
as OrchestratorError. Nothing is retried.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from build_router.config import DEFAULT_API_BASE_URL
from build_router.errors import OrchestratorError
from build_router.orchestrator.models import BuildDescriptor, Environment, StartedBuild

logger = logging.getLogger(__name__)

# Env var that marks a build as started by the router.
SOURCE_BUILD_NUMBER_ENV = "SOURCE_BITRISE_BUILD_NUMBER"

TRIGGERED_BY = "build-router"

DEFAULT_TIMEOUT = 30.0


class BitriseApp:
    """Client for one Bitrise app.

    Use as a context manager so the underlying HTTP client is closed.
    """

    def __init__(
        self,
        app_slug: str,
        access_token: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize BitriseApp.

        Args:
            app_slug: Slug of the app whose builds are read and started.
            access_token: Personal access token.
            base_url: API root, without trailing slash.
            timeout: Request timeout in seconds.
            client: Optional preconfigured client; closed by ``close()``.
        """
        self.app_slug = app_slug
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._headers = {"Authorization": access_token}

    def __enter__(self) -> BitriseApp:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def builds_url(self) -> str:
        return f"{self.base_url}/apps/{self.app_slug}/builds"

    def _request(
        self, method: str, url: str, json_body: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            response = self._client.request(
                method, url, headers=self._headers, json=json_body
            )
        except httpx.HTTPError as e:
            raise OrchestratorError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise OrchestratorError(
                f"{method} {url} returned HTTP {response.status_code}: "
                f"{response.text.strip()}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise OrchestratorError(f"{method} {url} returned invalid JSON") from e
        if not isinstance(body, dict):
            raise OrchestratorError(f"{method} {url} returned a non-object body")
        return body

    def get_build(self, build_slug: str) -> BuildDescriptor:
        """Fetch a build of this app.

        Args:
            build_slug: Slug of the build.

        Returns:
            BuildDescriptor of the build.

        Raises:
            OrchestratorError: If the request fails or the body is unexpected.
        """
        url = f"{self.builds_url}/{build_slug}"
        logger.debug("Fetching build %s", build_slug)
        body = self._request("GET", url)
        try:
            return BuildDescriptor.model_validate(body.get("data"))
        except ValidationError as e:
            raise OrchestratorError(f"Unexpected build payload for {build_slug}") from e

    def start_build(
        self,
        workflow: str,
        build_params: dict[str, Any],
        build_number: str,
        environments: list[Environment],
    ) -> StartedBuild:
        """Start a build of ``workflow``.

        Args:
            workflow: Workflow id to run.
            build_params: Trigger parameters (branch, tag, commit_hash, ...).
            build_number: Number of the starting build, passed to the new
                build so it knows it is a child.
            environments: Extra env bindings for the new build.

        Returns:
            StartedBuild describing the new build.

        Raises:
            OrchestratorError: If the request fails or the body is unexpected.
        """
        source = Environment(mapped_to=SOURCE_BUILD_NUMBER_ENV, value=build_number)
        envs = [*environments, source]
        params = dict(build_params)
        params["workflow_id"] = workflow
        params["environments"] = [env.model_dump() for env in envs]
        params["skip_git_status_report"] = True

        payload = {
            "hook_info": {"type": "bitrise"},
            "build_params": params,
            "triggered_by": TRIGGERED_BY,
        }
        logger.debug("Starting workflow %s with params %s", workflow, params)
        body = self._request("POST", self.builds_url, json_body=payload)
        try:
            return StartedBuild.model_validate(body)
        except ValidationError as e:
            raise OrchestratorError(
                f"Unexpected start response for workflow {workflow}"
            ) from e


__all__ = ["SOURCE_BUILD_NUMBER_ENV", "TRIGGERED_BY", "BitriseApp"]
