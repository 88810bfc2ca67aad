"""Bitrise build orchestration API client.

Access via build_router.orchestrator.client and build_router.orchestrator.models.
"""

from build_router.orchestrator.client import BitriseApp
from build_router.orchestrator.models import BuildDescriptor, Environment, StartedBuild

__all__ = ["BitriseApp", "BuildDescriptor", "Environment", "StartedBuild"]
