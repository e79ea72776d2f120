"""
MCP tool definitions for the weather and App Platform servers.

This module is intentionally thin - it handles tool registration and
input validation only and delegates to the API clients:

- tools/weather_client.py: NWS alerts and forecasts
- tools/digitalocean_client.py: App Platform apps and deployments
- tools/credentials.py: API token discovery
"""

import logging
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from api.models import AppSpec, Domain, GitSource, StaticSite
from policies.validation import validator
from tools.digitalocean_client import AppPlatformClient
from tools.weather_client import WeatherClient

logger = logging.getLogger(__name__)

SERVER_NAMES = ("weather", "digitalocean", "all")

# =============================================================================
# Client Instances
# =============================================================================

_weather_client: Optional[WeatherClient] = None
_app_platform_client: Optional[AppPlatformClient] = None


def get_weather_client() -> WeatherClient:
    global _weather_client
    if _weather_client is None:
        _weather_client = WeatherClient()
    return _weather_client


def get_app_platform_client() -> AppPlatformClient:
    global _app_platform_client
    if _app_platform_client is None:
        _app_platform_client = AppPlatformClient()
    return _app_platform_client


def set_weather_client(client: Optional[WeatherClient]) -> None:
    """For testing."""
    global _weather_client
    _weather_client = client


def set_app_platform_client(client: Optional[AppPlatformClient]) -> None:
    """For testing."""
    global _app_platform_client
    _app_platform_client = client


TokenParam = Annotated[
    Optional[str],
    Field(description="DigitalOcean API token (optional if configured locally)"),
]
AppIdParam = Annotated[str, Field(description="App ID")]
DeploymentIdParam = Annotated[str, Field(description="Deployment ID")]


def _check_ids(**ids: str) -> Optional[str]:
    """Return an error message if any ID is invalid."""
    result = validator.validate_identifiers(ids)
    if not result.is_valid:
        return result.to_message()
    return None


# =============================================================================
# Weather Tools
# =============================================================================

async def get_alerts(
    state: Annotated[str, Field(description="Two-letter state code (e.g. CA, NY)")],
) -> str:
    """Get weather alerts for a state."""
    is_valid, error = validator.validate_state_code(state)
    if not is_valid:
        return error
    return await get_weather_client().get_alerts_for_state(state)


async def get_forecast(
    latitude: Annotated[float, Field(ge=-90, le=90, description="Latitude of the location")],
    longitude: Annotated[float, Field(ge=-180, le=180, description="Longitude of the location")],
) -> str:
    """Get weather forecast for a location."""
    result = validator.validate_location(latitude, longitude)
    if not result.is_valid:
        return result.to_message()
    forecast = await get_weather_client().get_forecast_for_location(latitude, longitude)
    return result.with_warnings(forecast)


# =============================================================================
# App Platform Tools
# =============================================================================

async def deploy_static_site(
    app_name: Annotated[str, Field(description="Name for your app")],
    region: Annotated[str, Field(description="Region code (e.g., nyc, sfo)")],
    repo: Annotated[str, Field(description="GitHub repository (username/repo)")],
    branch: Annotated[str, Field(description="Branch to deploy")] = "main",
    source_dir: Annotated[str, Field(description="Directory in repo containing source code")] = "/",
    build_command: Annotated[Optional[str], Field(description="Build command (if needed)")] = None,
    output_dir: Annotated[Optional[str], Field(description="Directory where build outputs files")] = None,
    deploy_on_push: Annotated[bool, Field(description="Auto-deploy on git push")] = True,
    environment_slug: Annotated[str, Field(description="Runtime environment (html, node-js, etc.)")] = "html",
    custom_domain: Annotated[Optional[str], Field(description="Custom domain (optional)")] = None,
    token: TokenParam = None,
) -> str:
    """Deploy a static website to DigitalOcean App Platform."""
    result = validator.validate_deploy_request(app_name, region, repo, branch)
    if not result.is_valid:
        return result.to_message()

    site = StaticSite(
        github=GitSource(repo=repo, branch=branch, deploy_on_push=deploy_on_push),
        environment_slug=environment_slug,
        source_dir=source_dir,
        build_command=build_command or None,
        output_dir=output_dir or None,
    )
    spec = AppSpec(name=app_name, region=region, static_sites=[site])
    if custom_domain:
        spec.domains = [Domain(name=custom_domain)]

    created = await get_app_platform_client().create_app(spec, token)
    return result.with_warnings(created)


async def get_app_info(app_id: AppIdParam, token: TokenParam = None) -> str:
    """Get information about a DigitalOcean App Platform app."""
    error = _check_ids(app_id=app_id)
    if error:
        return error
    return await get_app_platform_client().get_app_info(app_id, token)


async def get_deployment_status(
    app_id: AppIdParam,
    deployment_id: DeploymentIdParam,
    token: TokenParam = None,
) -> str:
    """Get the status of a specific deployment."""
    error = _check_ids(app_id=app_id, deployment_id=deployment_id)
    if error:
        return error
    return await get_app_platform_client().get_deployment_status(app_id, deployment_id, token)


async def list_deployments(app_id: AppIdParam, token: TokenParam = None) -> str:
    """List all deployments for an app."""
    error = _check_ids(app_id=app_id)
    if error:
        return error
    return await get_app_platform_client().list_deployments(app_id, token)


async def create_deployment(
    app_id: AppIdParam,
    force_build: Annotated[bool, Field(description="Force a rebuild without cache")] = False,
    token: TokenParam = None,
) -> str:
    """Create a new deployment (redeploy an app)."""
    error = _check_ids(app_id=app_id)
    if error:
        return error
    return await get_app_platform_client().create_deployment(app_id, force_build, token)


async def get_deployment_logs(
    app_id: AppIdParam,
    deployment_id: DeploymentIdParam,
    token: TokenParam = None,
) -> str:
    """Get logs for a deployment."""
    error = _check_ids(app_id=app_id, deployment_id=deployment_id)
    if error:
        return error
    return await get_app_platform_client().get_deployment_logs(app_id, deployment_id, token)


async def delete_app(app_id: AppIdParam, token: TokenParam = None) -> str:
    """Delete an app from DigitalOcean App Platform."""
    error = _check_ids(app_id=app_id)
    if error:
        return error
    return await get_app_platform_client().delete_app(app_id, token)


WEATHER_TOOLS = {
    "get-alerts": get_alerts,
    "get-forecast": get_forecast,
}

APP_PLATFORM_TOOLS = {
    "deploy-static-site": deploy_static_site,
    "get-app-info": get_app_info,
    "get-deployment-status": get_deployment_status,
    "list-deployments": list_deployments,
    "create-deployment": create_deployment,
    "get-deployment-logs": get_deployment_logs,
    "delete-app": delete_app,
}


# =============================================================================
# Server Factories
# =============================================================================

def _register(server: FastMCP, tools: dict) -> None:
    for name, fn in tools.items():
        server.add_tool(fn, name=name, description=fn.__doc__)


def create_weather_server() -> FastMCP:
    """Create the weather MCP server."""
    server = FastMCP("weather")
    _register(server, WEATHER_TOOLS)
    return server


def create_digitalocean_server() -> FastMCP:
    """Create the DigitalOcean App Platform MCP server."""
    server = FastMCP("digitalocean")
    _register(server, APP_PLATFORM_TOOLS)
    return server


def create_server(name: str = "all") -> FastMCP:
    """
    Create an MCP server by name.

    Args:
        name: "weather", "digitalocean", or "all" for every tool

    Raises:
        ValueError: For an unknown server name
    """
    if name == "weather":
        return create_weather_server()
    if name == "digitalocean":
        return create_digitalocean_server()
    if name == "all":
        server = FastMCP("weather-digitalocean")
        _register(server, WEATHER_TOOLS)
        _register(server, APP_PLATFORM_TOOLS)
        return server
    raise ValueError(f"Unknown server '{name}', expected one of: {', '.join(SERVER_NAMES)}")
