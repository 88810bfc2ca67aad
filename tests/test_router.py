"""Tests for router.py module.

Uses a fake orchestrator client and an in-memory exporter.
"""

import pytest

from build_router.config import Settings
from build_router.errors import ConfigurationError, OrchestratorError
from build_router.export import GIT_TAG_ENV, STARTED_BUILD_SLUGS_ENV
from build_router.orchestrator.client import BitriseApp
from build_router.orchestrator.models import BuildDescriptor, StartedBuild
from build_router.params.assembler import BuildParameterRecord
from build_router.router import (
    default_app_factory,
    inject_build_params,
    plan_builds,
    route_builds,
)
from build_router.types import BuildType


class FakeApp:
    """In-memory stand-in for BitriseApp."""

    def __init__(self, fail_on_start: int | None = None):
        self.build = BuildDescriptor(
            slug="build-1",
            build_number=42,
            triggered_workflow="deploy",
            original_build_params={"branch": "", "tag": "1.2.3-RC1"},
        )
        self.started: list[dict] = []
        self.fail_on_start = fail_on_start
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def get_build(self, build_slug):
        assert build_slug == "build-1"
        return self.build

    def start_build(self, workflow, build_params, build_number, environments):
        if self.fail_on_start is not None and len(self.started) == self.fail_on_start:
            raise OrchestratorError("HTTP 500", status_code=500)
        self.started.append(
            {
                "workflow": workflow,
                "params": build_params,
                "build_number": build_number,
                "envs": {e.mapped_to: e.value for e in environments},
            }
        )
        n = len(self.started)
        return StartedBuild(build_slug=f"child-{n}", triggered_workflow=workflow)


class Recorder:
    """Exporter that remembers what was exported."""

    def __init__(self):
        self.exported: dict[str, str] = {}

    def __call__(self, key, value):
        self.exported[key] = value


def make_settings(**overrides) -> Settings:
    values = {
        "app_slug": "app-1",
        "build_slug": "build-1",
        "build_number": "42",
        "access_token": "token",
        "triggered_workflow": "deploy",
        "supported_regions": "SG=singapore\nTW=taiwan\nAU=australia",
        "git_tag": "1.2.3-RC1",
        "git_commit": "pinned",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def fake_app():
    return FakeApp()


@pytest.fixture
def recorder():
    return Recorder()


class TestInjectBuildParams:
    """Tests for inject_build_params function."""

    def _record(self, new_tag, new_commit_hash):
        return BuildParameterRecord(
            build_task="assembleTaiwanGmsQa",
            alpha2_code="TW",
            slack_flag=":flag-tw:",
            region="Taiwan",
            gms_xml_path="x",
            package_name="p",
            bs_suffix="QA",
            new_tag=new_tag,
            new_commit_hash=new_commit_hash,
            build_type=BuildType.QA,
        )

    def test_overrides(self, fake_app):
        """Tag and commit should be overlaid on the original params."""
        params = inject_build_params(fake_app.build, self._record("1.2.3-TW-RC1", "abc"))

        assert params == {
            "branch": "",
            "tag": "1.2.3-TW-RC1",
            "commit_hash": "abc",
            "triggered_by": "Build #42",
        }
        assert fake_app.build.original_build_params["tag"] == "1.2.3-RC1"

    def test_empty_values_not_overlaid(self, fake_app):
        """Empty tag and commit should keep the original params."""
        params = inject_build_params(fake_app.build, self._record("", ""))

        assert params["tag"] == "1.2.3-RC1"
        assert "commit_hash" not in params
        assert params["triggered_by"] == "Build #42"


class TestRouteBuilds:
    """Tests for route_builds function."""

    def test_fan_out(self, fake_app, recorder):
        """The first region should be applied and the rest started in order."""
        result = route_builds(
            make_settings(), app_factory=lambda s: fake_app, exporter=recorder
        )

        assert [r.alpha2_code for r in result.records] == ["SG", "TW", "AU"]
        assert result.build_slugs == ["child-1", "child-2"]
        assert fake_app.closed

        assert recorder.exported["ALPHA_2_CODE"] == "SG"
        assert recorder.exported[GIT_TAG_ENV] == "1.2.3-SG-RC1"
        assert recorder.exported[STARTED_BUILD_SLUGS_ENV] == "child-1\nchild-2"

        first, second = fake_app.started
        assert first["workflow"] == "deploy"
        assert first["build_number"] == "42"
        assert first["params"]["tag"] == "1.2.3-TW-RC1"
        assert first["envs"]["ALPHA_2_CODE"] == "TW"
        assert first["envs"]["BUILD_TYPE"] == "qa"
        assert second["params"]["tag"] == "1.2.3-AU-RC1"

    def test_single_region_starts_nothing(self, fake_app, recorder):
        """A single region should only be applied locally."""
        result = route_builds(
            make_settings(git_tag="1.2.3-TW-RC1"),
            app_factory=lambda s: fake_app,
            exporter=recorder,
        )

        assert len(result.records) == 1
        assert result.started == []
        assert fake_app.started == []
        assert GIT_TAG_ENV not in recorder.exported
        assert recorder.exported[STARTED_BUILD_SLUGS_ENV] == ""

    def test_commit_lookup(self, fake_app, recorder):
        """Without a pinned commit, the tag's commit should be used."""
        route_builds(
            make_settings(git_commit=None),
            app_factory=lambda s: fake_app,
            exporter=recorder,
            resolve_commit=lambda tag: "c0ffee",
        )

        assert recorder.exported["BITRISE_GIT_COMMIT"] == "c0ffee"
        assert all(s["params"]["commit_hash"] == "c0ffee" for s in fake_app.started)

    def test_child_build_bypasses(self, recorder):
        """Builds started by the router should not route again."""

        def factory(settings):
            raise AssertionError("client created for a child build")

        result = route_builds(
            make_settings(parent_build="41"), app_factory=factory, exporter=recorder
        )

        assert result.bypassed is True
        assert result.records == []
        assert recorder.exported == {}

    def test_submission_failure_is_fatal(self, recorder):
        """A failed start should stop the fan-out."""
        app = FakeApp(fail_on_start=1)

        with pytest.raises(OrchestratorError):
            route_builds(make_settings(), app_factory=lambda s: app, exporter=recorder)

        assert len(app.started) == 1
        assert app.closed
        assert STARTED_BUILD_SLUGS_ENV not in recorder.exported

    def test_missing_settings(self, recorder):
        """Missing API settings should be a configuration error."""
        with pytest.raises(ConfigurationError, match="access_token"):
            route_builds(make_settings(access_token=""), exporter=recorder)

    def test_missing_workflow(self, fake_app, recorder):
        """Fanning out without a workflow should be a configuration error."""
        with pytest.raises(ConfigurationError, match="WORKFLOW"):
            route_builds(
                make_settings(triggered_workflow=""),
                app_factory=lambda s: fake_app,
                exporter=recorder,
            )

    def test_no_reference(self, fake_app, recorder):
        """No tag and no branch should be a configuration error."""
        with pytest.raises(ConfigurationError):
            route_builds(
                make_settings(git_tag=None),
                app_factory=lambda s: fake_app,
                exporter=recorder,
            )

    def test_no_reference_fails_before_api(self, recorder):
        """Configuration errors should be raised before the client is created."""

        def factory(settings):
            raise AssertionError("client created before parameters were derived")

        with pytest.raises(ConfigurationError):
            route_builds(
                make_settings(git_tag=None), app_factory=factory, exporter=recorder
            )
        assert recorder.exported == {}

    def test_single_region_skips_api(self, recorder):
        """Without builds to start, the API should not be called."""

        def factory(settings):
            raise AssertionError("client created for a single region build")

        result = route_builds(
            make_settings(git_tag="1.2.3-TW-RC1"),
            app_factory=factory,
            exporter=recorder,
        )

        assert [r.alpha2_code for r in result.records] == ["TW"]
        assert recorder.exported[STARTED_BUILD_SLUGS_ENV] == ""

    def test_every_region_excluded(self, fake_app, recorder):
        """Excluding every region should fail without exporting anything."""
        with pytest.raises(ConfigurationError, match="Every supported region"):
            route_builds(
                make_settings(all_tag_excludes="SG\nTW\nAU"),
                app_factory=lambda s: fake_app,
                exporter=recorder,
            )

        assert recorder.exported == {}
        assert fake_app.started == []


class TestPlanBuilds:
    """Tests for plan_builds function."""

    def test_plan(self):
        """plan_builds should derive records from settings alone."""
        records = plan_builds(make_settings(all_tag_excludes="AU"))
        assert [r.alpha2_code for r in records] == ["SG", "TW"]

    def test_plan_requires_regions(self):
        """plan_builds should require the region map."""
        with pytest.raises(ConfigurationError, match="supported_regions"):
            plan_builds(make_settings(supported_regions=""))


class TestDefaultAppFactory:
    """Tests for default_app_factory function."""

    def test_factory(self):
        """The client should be built from settings."""
        settings = make_settings(api_base_url="https://api.example.com/v0.1/")
        with default_app_factory(settings) as app:
            assert isinstance(app, BitriseApp)
            assert app.builds_url == "https://api.example.com/v0.1/apps/app-1/builds"
