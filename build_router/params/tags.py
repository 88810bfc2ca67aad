"""Tag rewriting for all-regions builds.

When one tag fans out to several regions, every child build gets its own
tag: the region and RC keywords are taken out of the original tag and put
back in a fixed order with the region's code.

Example, QA build of ``1.2.3-ALL-RC1`` for ``TW``: ``1.2.3-TW-RC1``.
"""

from __future__ import annotations

from collections.abc import Iterable

from build_router.types import NONE, BuildType

TAG_SEPARATOR = "-"

# Keywords that only make sense on the original tag.
FANOUT_KEYWORDS = ("ALL", "APK")


def join_ignore_empty(items: Iterable[str], sep: str = TAG_SEPARATOR) -> str:
    """Join the non-empty items with ``sep``."""
    return sep.join(item for item in items if item)


def remove_keywords(
    keywords: Iterable[str], original: str, sep: str = TAG_SEPARATOR
) -> str:
    """Drop every ``sep``-separated part of ``original`` found in ``keywords``.

    Matching is case-insensitive; surviving parts keep their order.
    """
    lookup = {keyword.lower() for keyword in keywords if keyword}
    return sep.join(part for part in original.split(sep) if part.lower() not in lookup)


def _present(value: str) -> str:
    return "" if value == NONE else value


def generate_new_tag(
    current_tag: str,
    version: str,
    alpha2_code: str,
    release_candidate: str,
    build_type: BuildType,
) -> str:
    """Compute the tag a fanned-out region build should use.

    Args:
        current_tag: Token the invoking build was started for.
        version: Extracted version, or NONE.
        alpha2_code: Code of the region being built.
        release_candidate: Extracted RC qualifier, or NONE.
        build_type: Resolved build type.

    Returns:
        New tag, or an empty string for debug builds (no override).
    """
    version = _present(version)
    release_candidate = _present(release_candidate)

    keywords = [current_tag, version, alpha2_code, release_candidate, *FANOUT_KEYWORDS]
    remainder = remove_keywords(keywords, current_tag)

    if build_type is BuildType.QA:
        return join_ignore_empty([version, remainder, alpha2_code, release_candidate])
    if build_type is BuildType.RELEASE:
        return f"{version}{TAG_SEPARATOR}{alpha2_code}"
    return ""


__all__ = [
    "FANOUT_KEYWORDS",
    "TAG_SEPARATOR",
    "generate_new_tag",
    "join_ignore_empty",
    "remove_keywords",
]
