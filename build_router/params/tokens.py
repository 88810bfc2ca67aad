"""Reference token parsing.

A reference token is the part of a tag or branch name that encodes the
intent of a build, e.g. ``1.2.3-SG-HMS-RC1``. Each field is matched on its
own; the first match wins and a missing field becomes ``NONE``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from build_router.types import NONE

VERSION_RE = re.compile(r"\d+\.\d+\.\d+")
RC_RE = re.compile(r"RC\d+")
VENDOR_SERVICE_RE = re.compile(r"(G|H)MS")

# Marks a raw package build even when the build type would produce a bundle.
APK_MARKER = "-APK"


@dataclass(frozen=True)
class ReferenceToken:
    """Fields extracted from a reference token.

    Attributes:
        version: Three-part version, or NONE.
        release_candidate: ``RC<n>`` qualifier, or NONE.
        region_code: Configured alpha-2 code found in the token, or NONE.
        vendor_service: ``GMS``/``HMS``, or NONE.
        is_package_format_apk: Whether the token asks for a raw APK.
    """

    version: str = NONE
    release_candidate: str = NONE
    region_code: str = NONE
    vendor_service: str = NONE
    is_package_format_apk: bool = False

    @property
    def has_version(self) -> bool:
        return self.version != NONE

    @property
    def has_release_candidate(self) -> bool:
        return self.release_candidate != NONE


def find_or_default(
    pattern: re.Pattern[str] | None, text: str, default: str = NONE
) -> str:
    """Return the first non-empty match of ``pattern`` in ``text``."""
    if pattern is None:
        return default
    match = pattern.search(text)
    if match and match.group(0):
        return match.group(0)
    return default


def compile_region_pattern(region_codes: Iterable[str]) -> re.Pattern[str] | None:
    """Build a pattern matching any of the configured alpha-2 codes.

    Codes are tried longest first, then alphabetically, so the result does
    not depend on configuration order.

    Returns:
        Compiled pattern, or None when there are no codes.
    """
    unique = {code for code in region_codes if code}
    codes = sorted(unique, key=lambda c: (-len(c), c))
    if not codes:
        return None
    return re.compile("|".join(re.escape(code) for code in codes))


def extract_token(token: str, region_codes: Iterable[str]) -> ReferenceToken:
    """Parse a reference token into its fields.

    Region codes are matched case-sensitively in their stored uppercase
    form, so ``1.2.3-tw-RC1`` carries no region code even though
    ``RegionMap`` lookups ignore case.

    Args:
        token: Tag, or branch suffix, to parse.
        region_codes: Alpha-2 codes of the configured regions.

    Returns:
        ReferenceToken with every field set or NONE.
    """
    return ReferenceToken(
        version=find_or_default(VERSION_RE, token),
        release_candidate=find_or_default(RC_RE, token),
        region_code=find_or_default(compile_region_pattern(region_codes), token),
        vendor_service=find_or_default(VENDOR_SERVICE_RE, token),
        is_package_format_apk=APK_MARKER in token,
    )


__all__ = [
    "APK_MARKER",
    "RC_RE",
    "VENDOR_SERVICE_RE",
    "VERSION_RE",
    "ReferenceToken",
    "compile_region_pattern",
    "extract_token",
    "find_or_default",
]
