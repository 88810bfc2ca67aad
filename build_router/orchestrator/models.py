"""Pydantic models for Bitrise API payloads.

Only the fields the router reads are declared; everything else in the API
responses is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Environment(BaseModel):
    """Environment variable binding passed to a started build."""

    mapped_to: str
    value: str
    is_expand: bool = False


class BuildDescriptor(BaseModel):
    """A build as returned by ``GET /apps/{app}/builds/{build}``."""

    model_config = ConfigDict(extra="ignore")

    slug: str
    build_number: int
    triggered_workflow: str = ""
    original_build_params: dict[str, Any] = Field(default_factory=dict)


class StartedBuild(BaseModel):
    """Response of ``POST /apps/{app}/builds``."""

    model_config = ConfigDict(extra="ignore")

    status: str = ""
    message: str = ""
    slug: str = ""
    service: str = ""
    build_slug: str
    build_number: int = 0
    build_url: str = ""
    triggered_workflow: str = ""


__all__ = ["BuildDescriptor", "Environment", "StartedBuild"]
