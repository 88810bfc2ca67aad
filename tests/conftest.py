"""Shared fixtures for build_router tests."""

import pytest

from build_router.params.regions import RegionMap

# Variables the CI platform may have set in the environment running the tests.
ROUTER_ENV_VARS = (
    "SOURCE_BITRISE_BUILD_NUMBER",
    "BITRISE_APP_SLUG",
    "BITRISE_BUILD_SLUG",
    "BITRISE_BUILD_NUMBER",
    "BITRISE_TRIGGERED_WORKFLOW_ID",
    "BITRISE_GIT_TAG",
    "BITRISE_GIT_BRANCH",
    "BITRISE_GIT_COMMIT",
    "BITRISE_SOURCE_DIR",
    "access_token",
    "supported_regions",
    "all_tag_excludes",
    "default_region",
    "package_base",
    "api_base_url",
    "api_timeout",
    "verbose",
    "log_level",
    "PR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the host CI environment out of Settings."""
    for name in ROUTER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def region_map() -> RegionMap:
    """Two-region map with Singapore as the default region."""
    return RegionMap.parse("SG=singapore\nTW=taiwan")


@pytest.fixture
def three_regions() -> RegionMap:
    """Three-region map."""
    return RegionMap.parse("SG=singapore\nTW=taiwan\nAU=australia")
