# API package
"""
MCP tool-call boundary: pydantic app spec models and server factories.
"""

from .models import (
    AppSpec,
    StaticSite,
    GitSource,
    Domain,
)

__all__ = [
    "AppSpec",
    "StaticSite",
    "GitSource",
    "Domain",
]
