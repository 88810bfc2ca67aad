"""Tests for params/tags.py module."""

import pytest

from build_router.params.tags import (
    FANOUT_KEYWORDS,
    generate_new_tag,
    join_ignore_empty,
    remove_keywords,
)
from build_router.types import NONE, BuildType


class TestJoinIgnoreEmpty:
    """Tests for join_ignore_empty function."""

    def test_skips_empty(self):
        """Empty items should not produce separators."""
        assert join_ignore_empty(["1.2.3", "", "TW", ""]) == "1.2.3-TW"

    def test_all_empty(self):
        """Only empty items should give an empty string."""
        assert join_ignore_empty(["", ""]) == ""


class TestRemoveKeywords:
    """Tests for remove_keywords function."""

    def test_removes_case_insensitive(self):
        """Keywords should match components in any case."""
        assert remove_keywords(["all", "RC1"], "beta-ALL-rc1-x") == "beta-x"

    def test_keeps_order(self):
        """Surviving components should keep their order."""
        assert remove_keywords(["X"], "c-X-a-b") == "c-a-b"

    def test_only_whole_components(self):
        """Keywords inside a component should be kept."""
        assert remove_keywords(["ALL"], "BALL-ALL") == "BALL"

    def test_idempotent(self):
        """Removing the same keywords twice should equal removing once."""
        keywords = ["1.2.3", "TW", "RC1", *FANOUT_KEYWORDS]
        for tag in ["1.2.3-ALL-RC1", "1.2.3-beta-APK-TW-RC1", "x-y-z", "ALL"]:
            once = remove_keywords(keywords, tag)
            assert remove_keywords(keywords, once) == once

    def test_ignores_empty_keywords(self):
        """Empty keywords should not remove empty components."""
        assert remove_keywords(["", "A"], "A--B") == "-B"


class TestGenerateNewTag:
    """Tests for generate_new_tag function."""

    def test_qa(self):
        """QA tags should be version, remainder, code and RC."""
        tag = generate_new_tag("1.2.3-ALL-RC1", "1.2.3", "TW", "RC1", BuildType.QA)
        assert tag == "1.2.3-TW-RC1"

    def test_qa_keeps_remainder(self):
        """Unrecognized components should be kept after the version."""
        tag = generate_new_tag(
            "1.2.3-beta-all-APK-RC1", "1.2.3", "SG", "RC1", BuildType.QA
        )
        assert tag == "1.2.3-beta-SG-RC1"

    def test_qa_without_version(self):
        """Missing fields should not show up as 'none'."""
        tag = generate_new_tag("nightly-RC2", NONE, "TW", "RC2", BuildType.QA)
        assert tag == "nightly-TW-RC2"

    def test_qa_without_rc(self):
        """A QA tag without an RC should end with the code."""
        assert generate_new_tag("nightly", NONE, "TW", NONE, BuildType.QA) == "TW"

    def test_release(self):
        """Release tags should be version and code only."""
        tag = generate_new_tag("2.0.0-ALL-foo", "2.0.0", "TW", NONE, BuildType.RELEASE)
        assert tag == "2.0.0-TW"

    def test_debug_has_no_override(self):
        """Debug builds should not get a new tag."""
        assert generate_new_tag("develop", NONE, "TW", NONE, BuildType.DEBUG) == ""

    @pytest.mark.parametrize("code", ["SG", "TW", "AU"])
    def test_contains_code(self, code):
        """Every region should get a tag with its own code."""
        tag = generate_new_tag("1.2.3-RC1", "1.2.3", code, "RC1", BuildType.QA)
        assert tag.split("-") == ["1.2.3", code, "RC1"]
