"""
Pydantic models for DigitalOcean App Platform app specs.

These models define the request bodies sent to the App Platform API.
Only the static site subset used by the deploy tool is modelled.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DomainType(str, Enum):
    """Role of a custom domain."""
    PRIMARY = "PRIMARY"
    ALIAS = "ALIAS"


class GitSource(BaseModel):
    """GitHub source for a component."""

    repo: str = Field(..., description="Repository in owner/repo form")
    branch: str = Field(default="main", description="Branch to deploy")
    deploy_on_push: bool = Field(default=True, description="Redeploy on every push")


class StaticSite(BaseModel):
    """Static site component of an app."""

    name: str = Field(default="website", description="Component name")
    github: GitSource
    environment_slug: Optional[str] = Field(
        default="html",
        description="Buildpack runtime (html, node-js, ...)",
    )
    source_dir: str = Field(default="/", description="Directory in the repo holding the site")
    build_command: Optional[str] = None
    output_dir: Optional[str] = None


class Domain(BaseModel):
    """Custom domain attached to an app."""

    name: str
    type: Optional[DomainType] = DomainType.PRIMARY


class AppSpec(BaseModel):
    """Top-level App Platform app specification."""

    name: str = Field(..., description="App name")
    region: str = Field(..., description="Region slug (e.g. nyc, sfo)")
    static_sites: list[StaticSite] = Field(default_factory=list)
    domains: Optional[list[Domain]] = None

    def to_request_body(self) -> dict:
        """Serialize for POST /v2/apps."""
        return {"spec": self.model_dump(mode="json", exclude_none=True)}
