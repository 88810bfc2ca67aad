"""Shared type definitions for build_router.

This module contains enums and constants shared across subpackages to avoid
circular imports.
"""

from enum import Enum

# Returned by the token extractor when a field is not present in the reference.
NONE = "none"


class BuildType(Enum):
    """Kind of build, ordered by increasing production-ness."""

    DEBUG = 0
    QA = 1
    RELEASE = 2

    @property
    def label(self) -> str:
        """Canonical lowercase name used in task names and package ids."""
        return _BUILD_TYPE_LABELS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BuildType):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BuildType):
            return NotImplemented
        return self.value <= other.value


_BUILD_TYPE_LABELS = {
    BuildType.DEBUG: "debug",
    BuildType.QA: "qa",
    BuildType.RELEASE: "release",
}


class VendorService(str, Enum):
    """Mobile services backend a build targets."""

    GMS = "GMS"
    HMS = "HMS"


# Primary store identifier; the only vendor that produces app bundles.
PRIMARY_VENDOR = VendorService.GMS


__all__ = ["NONE", "PRIMARY_VENDOR", "BuildType", "VendorService"]
