"""Build parameter assembly.

This is the entry point of the derivation engine: it takes a BuildContext,
runs token extraction, classification, region resolution and tag rewriting,
and returns one BuildParameterRecord per region to build.

The first record always describes the running build itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from functools import partial
from typing import Any

from build_router.config import DEFAULT_PACKAGE_BASE, Settings
from build_router.params.classify import promote, select_token
from build_router.params.git import rev_parse_tag
from build_router.params.regions import RegionMap, parse_exclude_set, resolve_regions
from build_router.params.tags import generate_new_tag
from build_router.params.tokens import extract_token
from build_router.types import NONE, PRIMARY_VENDOR, BuildType

logger = logging.getLogger(__name__)

# Generated Google services resources for a flavor and build type.
GMS_XML_PATH_TEMPLATE = (
    "accmng/build/generated/res/google-services/{flavor}/{build_type}/values/values.xml"
)

BUNDLE_COMMAND = "bundle"
ASSEMBLE_COMMAND = "assemble"

QA_SUFFIX = "QA"
PROD_SUFFIX = "PROD"

CommitResolver = Callable[[str], str]


@dataclass(frozen=True)
class BuildContext:
    """Everything the engine reads from the CI environment.

    Attributes:
        region_map: Supported regions.
        exclude_set: Codes skipped by an all-regions build.
        default_region: Code built for pull requests; its region is the
            canonical one for package names.
        is_pull_request: Whether the build runs for a pull request.
        git_tag: Tag of the build, if any.
        git_branch: Branch of the build, if any.
        git_commit: Commit pinned by the CI environment, if any.
        source_dir: Repository checkout used for commit lookups.
        package_base: Package identifier of release builds.
    """

    region_map: RegionMap
    exclude_set: frozenset[str] = frozenset()
    default_region: str = "SG"
    is_pull_request: bool = False
    git_tag: str | None = None
    git_branch: str | None = None
    git_commit: str | None = None
    source_dir: str | None = None
    package_base: str = DEFAULT_PACKAGE_BASE

    @classmethod
    def from_settings(cls, settings: Settings) -> BuildContext:
        """Build a context from settings.

        Raises:
            ConfigurationError: If the region configuration is malformed.
        """
        return cls(
            region_map=RegionMap.parse(settings.supported_regions),
            exclude_set=parse_exclude_set(settings.all_tag_excludes),
            default_region=settings.default_region,
            is_pull_request=settings.is_pull_request,
            git_tag=settings.git_tag,
            git_branch=settings.git_branch,
            git_commit=settings.git_commit,
            source_dir=settings.source_dir,
            package_base=settings.package_base,
        )


@dataclass(frozen=True)
class BuildParameterRecord:
    """Parameters of one region build.

    Attributes:
        build_task: Gradle task, e.g. ``bundleSingaporeGmsRelease``.
        alpha2_code: Region code.
        slack_flag: Flag emoji for notifications, e.g. ``:flag-sg:``.
        region: Region display name.
        gms_xml_path: Generated Google services resource path.
        package_name: Application package identifier.
        bs_suffix: Environment suffix, ``QA`` or ``PROD``.
        new_tag: Tag to build from; empty when unchanged.
        new_commit_hash: Commit to build from; empty when unchanged.
        build_type: Resolved build type.
    """

    build_task: str
    alpha2_code: str
    slack_flag: str
    region: str
    gms_xml_path: str
    package_name: str
    bs_suffix: str
    new_tag: str
    new_commit_hash: str
    build_type: BuildType

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["build_type"] = self.build_type.label
        return data


def camel_join(*words: str) -> str:
    """Join words camel-case style: ``camel_join("bundle", "sg")`` -> ``bundleSg``."""
    out = ""
    for word in words:
        if not word:
            continue
        out += word if not out else word[:1].upper() + word[1:]
    return out


def generate_package_name(
    region: str,
    alpha2_code: str,
    build_type: BuildType,
    default_region: str | None,
    base: str,
) -> str:
    """Application package identifier for a region build.

    Non-default regions get a ``.<code>`` segment and non-release builds a
    ``.<build type>`` segment, e.g. ``com.example.tw.qa``.
    """
    name = base
    if region != default_region:
        name = f"{name}.{alpha2_code.lower()}"
    if build_type is not BuildType.RELEASE:
        name = f"{name}.{build_type.label}"
    return name


def select_build_command(
    build_type: BuildType, vendor_service: str, is_apk: bool
) -> str:
    """App bundles are only built for store releases on the primary vendor."""
    if (
        not is_apk
        and build_type is BuildType.RELEASE
        and vendor_service == PRIMARY_VENDOR.value
    ):
        return BUNDLE_COMMAND
    return ASSEMBLE_COMMAND


def resolve_commit_hash(
    context: BuildContext, resolve_commit: CommitResolver
) -> str:
    """Commit override for child builds; empty when the CI already pins one."""
    if context.git_commit is not None:
        return ""
    return resolve_commit(context.git_tag or "")


def generate_build_params(
    context: BuildContext,
    resolve_commit: CommitResolver | None = None,
) -> list[BuildParameterRecord]:
    """Derive one parameter record per region to build.

    Args:
        context: CI environment snapshot.
        resolve_commit: Maps a tag to a commit hash, returning an empty
            string on failure. Defaults to ``git rev-parse`` in
            ``context.source_dir``.

    Returns:
        Records in build order; the first one is the running build.

    Raises:
        ConfigurationError: If no reference is available or the region
            configuration cannot be resolved.
    """
    if resolve_commit is None:
        resolve_commit = partial(rev_parse_tag, cwd=context.source_dir)

    classification = select_token(context.git_tag, context.git_branch)
    token = classification.token
    fields = extract_token(token, context.region_map.codes)

    logger.info(
        "Reference %r: version=%s rc=%s region=%s vendor=%s apk=%s",
        token,
        fields.version,
        fields.release_candidate,
        fields.region_code,
        fields.vendor_service,
        fields.is_package_format_apk,
    )

    build_type = promote(classification, fields).build_type
    vendor = fields.vendor_service
    if vendor == NONE:
        vendor = PRIMARY_VENDOR.value
    build_cmd = select_build_command(build_type, vendor, fields.is_package_format_apk)
    logger.info("Build type: %s, command: %s", build_type.label, build_cmd)

    resolution = resolve_regions(
        region_code=fields.region_code,
        region_map=context.region_map,
        exclude_set=context.exclude_set,
        is_pull_request=context.is_pull_request,
        default_region=context.default_region,
        rewrite_tag=lambda code: generate_new_tag(
            token, fields.version, code, fields.release_candidate, build_type
        ),
    )

    commit_hash = resolve_commit_hash(context, resolve_commit)
    default_name = context.region_map.name_of(context.default_region)
    suffix = PROD_SUFFIX if build_type is BuildType.RELEASE else QA_SUFFIX

    records: list[BuildParameterRecord] = []
    for region in resolution.regions:
        alpha2_code = context.region_map.code_of(region) or ""
        flavor = camel_join(region, vendor.lower())
        record = BuildParameterRecord(
            build_task=camel_join(build_cmd, region, vendor.lower(), build_type.label),
            alpha2_code=alpha2_code,
            slack_flag=f":flag-{alpha2_code.lower()}:",
            region=region[:1].upper() + region[1:],
            gms_xml_path=GMS_XML_PATH_TEMPLATE.format(
                flavor=flavor, build_type=build_type.label
            ),
            package_name=generate_package_name(
                region, alpha2_code, build_type, default_name, context.package_base
            ),
            bs_suffix=suffix,
            new_tag=resolution.new_tags.get(region, ""),
            new_commit_hash=commit_hash,
            build_type=build_type,
        )
        logger.info("Build parameters: %s", record.to_dict())
        records.append(record)

    return records


__all__ = [
    "GMS_XML_PATH_TEMPLATE",
    "BuildContext",
    "BuildParameterRecord",
    "camel_join",
    "generate_build_params",
    "generate_package_name",
    "resolve_commit_hash",
    "select_build_command",
]
