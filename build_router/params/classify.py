"""Build type classification.

A tag makes a QA build, a branch a debug build. Either is promoted to a
release when the token carries a version but no RC qualifier.
"""

from __future__ import annotations

from dataclasses import dataclass

from build_router.errors import ConfigurationError
from build_router.params.tokens import ReferenceToken
from build_router.types import BuildType


@dataclass(frozen=True)
class Classification:
    """Build type and the token it was derived from."""

    build_type: BuildType
    token: str
    from_tag: bool


def select_token(git_tag: str | None, git_branch: str | None) -> Classification:
    """Pick the reference to parse and the initial build type.

    Args:
        git_tag: Tag of the build, if any.
        git_branch: Branch of the build, if any.

    Returns:
        Classification before version promotion.

    Raises:
        ConfigurationError: If neither a tag nor a branch is available.
    """
    if git_tag:
        return Classification(BuildType.QA, git_tag, from_tag=True)
    if git_branch:
        return Classification(
            BuildType.DEBUG, git_branch.rsplit("/", 1)[-1], from_tag=False
        )
    raise ConfigurationError("Neither BITRISE_GIT_TAG nor BITRISE_GIT_BRANCH is set")


def promote(classification: Classification, fields: ReferenceToken) -> Classification:
    """Promote to a release when a version is present without an RC."""
    if fields.has_version and not fields.has_release_candidate:
        return Classification(
            BuildType.RELEASE, classification.token, classification.from_tag
        )
    return classification


__all__ = ["Classification", "promote", "select_token"]
