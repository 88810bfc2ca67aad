"""Region configuration and resolution.

The region map comes from the ``supported_regions`` step input, one
``CODE=name`` pair per line, e.g.::

    SG=singapore
    TW=taiwan

Codes are case-insensitive and stored uppercase. Both codes and names must
be unique so the map can be inverted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from build_router.errors import ConfigurationError

logger = logging.getLogger(__name__)


class RegionMap:
    """Bijective mapping between alpha-2 codes and region names.

    Iteration follows configuration order.
    """

    def __init__(self, pairs: list[tuple[str, str]]) -> None:
        self._by_code: dict[str, str] = {}
        self._by_name: dict[str, str] = {}
        for code, name in pairs:
            key = code.strip().upper()
            value = name.strip()
            if not key or not value:
                raise ConfigurationError(f"Empty region code or name: {code}={name}")
            if key in self._by_code:
                raise ConfigurationError(f"Duplicate region code: {key}")
            if value in self._by_name:
                raise ConfigurationError(f"Duplicate region name: {value}")
            self._by_code[key] = value
            self._by_name[value] = key

    @classmethod
    def parse(cls, text: str) -> RegionMap:
        """Parse ``CODE=name`` lines; blank lines are skipped.

        Raises:
            ConfigurationError: On a line without ``=`` or an empty map.
        """
        pairs: list[tuple[str, str]] = []
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            code, sep, name = line.partition("=")
            if not sep:
                raise ConfigurationError(
                    f"Malformed region line {lineno}: {raw!r} (expected CODE=name)"
                )
            pairs.append((code, name))
        if not pairs:
            raise ConfigurationError("No supported regions configured")
        return cls(pairs)

    def __len__(self) -> int:
        return len(self._by_code)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._by_code.items())

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._by_code

    @property
    def codes(self) -> list[str]:
        return list(self._by_code)

    def name_of(self, code: str) -> str | None:
        """Region name for a code, or None."""
        return self._by_code.get(code.upper())

    def code_of(self, name: str) -> str | None:
        """Alpha-2 code for a region name, or None."""
        return self._by_name.get(name)


def parse_exclude_set(text: str) -> frozenset[str]:
    """Parse one region code per line into an uppercase set."""
    return frozenset(
        line.strip().upper() for line in text.splitlines() if line.strip()
    )


@dataclass(frozen=True)
class RegionResolution:
    """Regions to build and the tag each fanned-out region should use.

    Attributes:
        regions: Region names in build order.
        new_tags: Rewritten tag per region name; empty unless every region
            was built.
        build_all: Whether the all-regions path was taken.
    """

    regions: list[str]
    new_tags: dict[str, str] = field(default_factory=dict)
    build_all: bool = False


def resolve_regions(
    region_code: str,
    region_map: RegionMap,
    exclude_set: frozenset[str],
    is_pull_request: bool,
    default_region: str,
    rewrite_tag: Callable[[str], str],
) -> RegionResolution:
    """Decide which regions to build.

    1. A region code from the token selects exactly that region.
    2. Otherwise a pull request builds the default region only.
    3. Otherwise every configured region not in ``exclude_set`` is built,
       each with its own tag from ``rewrite_tag(code)``.

    Raises:
        ConfigurationError: If the default region or an excluded code is not
            in the region map, or if every region is excluded.
    """
    name = region_map.name_of(region_code)
    if name is not None:
        logger.info("Single region build: %s", name)
        return RegionResolution(regions=[name])

    if is_pull_request:
        default_name = region_map.name_of(default_region)
        if default_name is None:
            raise ConfigurationError(
                f"Default region {default_region} is not a supported region"
            )
        logger.info("Pull request build, falling back to %s", default_name)
        return RegionResolution(regions=[default_name])

    unknown = sorted(code for code in exclude_set if code not in region_map)
    if unknown:
        raise ConfigurationError(
            f"Excluded region(s) not in supported regions: {', '.join(unknown)}"
        )

    regions: list[str] = []
    new_tags: dict[str, str] = {}
    for code, region in region_map:
        if code in exclude_set:
            logger.debug("Skipping excluded region %s", code)
            continue
        new_tags[region] = rewrite_tag(code)
        regions.append(region)
    if not regions:
        raise ConfigurationError(
            "Every supported region is excluded from the all-regions build"
        )
    logger.info("All regions build: %s", ", ".join(regions))
    return RegionResolution(regions=regions, new_tags=new_tags, build_all=True)


__all__ = ["RegionMap", "RegionResolution", "parse_exclude_set", "resolve_regions"]
