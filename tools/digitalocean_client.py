"""
DigitalOcean App Platform API client.

App Platform API: https://api.digitalocean.com/v2/apps
- Requires a personal access token (bearer auth)
- Write access is needed to create apps, deployments and to delete apps

The token can be passed per call or discovered by CredentialResolver.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from api.models import AppSpec
from policies import SERVER_CONFIG
from tools.credentials import CredentialResolver
from tools.http_client import (
    ApiClient,
    Failure,
    RequestDescriptor,
    ResponseOutcome,
    json_list,
    json_object,
)

logger = logging.getLogger(__name__)

UNEXPECTED_FORMAT = "unexpected response format"
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
FRACTION_PATTERN = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an RFC 3339 log timestamp into an aware datetime.

    Fractional seconds of any precision are accepted. Missing or
    unparseable values sort first.
    """
    if not isinstance(value, str) or not value.strip():
        return EARLIEST

    text = value.strip()
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    text = FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable log timestamp: {value}")
        return EARLIEST

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AppPlatformClient:
    """
    Async client for DigitalOcean App Platform.

    Implements:
    - App creation, inspection and deletion
    - Deployment listing, status, creation and logs
    - Token discovery with a descriptive message when none is configured
    """

    def __init__(
        self,
        api_client: Optional[ApiClient] = None,
        resolver: Optional[CredentialResolver] = None,
    ):
        do_config = SERVER_CONFIG.get("digitalocean", {})
        self.api_base = do_config.get("api_base", "https://api.digitalocean.com/v2").rstrip("/")
        self.api = api_client or ApiClient(
            user_agent=do_config.get("user_agent", "mcp-digitalocean/1.0")
        )
        self.resolver = resolver or CredentialResolver()

    def missing_token_message(self) -> str:
        """Explain where a token can be configured."""
        locations = "\n".join(f"- {loc}" for loc in self.resolver.describe_locations())
        return (
            "No DigitalOcean API token found. Pass a token to the tool, "
            "or configure one in any of these locations:\n" + locations
        )

    async def _request(
        self,
        path: str,
        token: Optional[str],
        method: str = "GET",
        body: Optional[dict] = None,
    ) -> Optional[ResponseOutcome]:
        """Resolve the token and execute. Returns None when no token is available."""
        credential = self.resolver.resolve_token(token)
        if credential is None:
            return None
        return await self.api.execute(
            RequestDescriptor(f"{self.api_base}{path}", method=method, body=body),
            credential,
        )

    async def create_app(self, spec: AppSpec, token: Optional[str] = None) -> str:
        """
        Create a new app on App Platform.

        Args:
            spec: App specification
            token: API token with write access

        Returns:
            Summary with app ID, URL and deployment phase
        """
        outcome = await self._request("/apps", token, "POST", spec.to_request_body())
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            logger.error(f"Failed to create app {spec.name}: {outcome.describe()}")
            return f"Failed to create app: {outcome.describe()}"
        if not outcome.is_object:
            logger.error(f"Failed to create app {spec.name}: {UNEXPECTED_FORMAT}")
            return f"Failed to create app: {UNEXPECTED_FORMAT}"

        app = json_object(json_object(outcome.payload).get("app"))
        deployment = json_object(app.get("active_deployment") or app.get("pending_deployment"))
        logger.info(f"Created app {app.get('id')} ({spec.name})")

        return (
            "App created successfully!\n"
            f"App ID: {app.get('id', 'Unknown')}\n"
            f"Default URL: {app.get('default_ingress') or 'Pending'}\n"
            f"Deployment Status: {deployment.get('phase', 'UNKNOWN')}"
        )

    async def get_app_info(self, app_id: str, token: Optional[str] = None) -> str:
        """Fetch name, URL and deployment status of an app."""
        outcome = await self._request(f"/apps/{app_id}", token)
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to get app information: {outcome.describe()}"
        if not outcome.is_object:
            return f"Failed to get app information: {UNEXPECTED_FORMAT}"

        app = json_object(json_object(outcome.payload).get("app"))
        spec = json_object(app.get("spec"))
        deployment = json_object(app.get("active_deployment"))

        return (
            f"App: {spec.get('name', 'Unknown')}\n"
            f"ID: {app.get('id', app_id)}\n"
            f"URL: {app.get('default_ingress') or 'Not available'}\n"
            f"Deployment Status: {deployment.get('phase', 'No active deployment')}\n"
            f"Created: {app.get('created_at', 'Unknown')}"
        )

    async def get_deployment_status(
        self,
        app_id: str,
        deployment_id: str,
        token: Optional[str] = None,
    ) -> str:
        """Fetch the phase and timestamps of one deployment."""
        outcome = await self._request(f"/apps/{app_id}/deployments/{deployment_id}", token)
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to get deployment status: {outcome.describe()}"
        if not outcome.is_object:
            return f"Failed to get deployment status: {UNEXPECTED_FORMAT}"

        deployment = json_object(json_object(outcome.payload).get("deployment"))
        status = (
            f"Deployment ID: {deployment.get('id', deployment_id)}\n"
            f"Status: {deployment.get('phase', 'UNKNOWN')}\n"
            f"Created: {deployment.get('created_at', 'Unknown')}\n"
            f"Last Updated: {deployment.get('updated_at', 'Unknown')}"
        )

        progress = json_object(deployment.get("progress"))
        if progress.get("steps_total"):
            status += (
                f"\nProgress: {progress.get('steps_completed', 0)}"
                f"/{progress['steps_total']} steps"
            )
        return status

    async def list_deployments(self, app_id: str, token: Optional[str] = None) -> str:
        """List all deployments of an app."""
        outcome = await self._request(f"/apps/{app_id}/deployments", token)
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to list deployments: {outcome.describe()}"
        if not outcome.is_object:
            return f"Failed to list deployments: {UNEXPECTED_FORMAT}"

        deployments = [
            d for d in json_list(json_object(outcome.payload).get("deployments"))
            if isinstance(d, dict)
        ]
        if not deployments:
            return "No deployments found for this app."

        formatted = [
            f"ID: {d.get('id')}\nStatus: {d.get('phase')}\nCreated: {d.get('created_at')}"
            for d in deployments
        ]
        return f"Deployments for App {app_id}:\n\n" + "\n\n".join(formatted)

    async def create_deployment(
        self,
        app_id: str,
        force_build: bool = False,
        token: Optional[str] = None,
    ) -> str:
        """
        Trigger a new deployment of an existing app.

        Args:
            app_id: App to redeploy
            force_build: Rebuild without the build cache
            token: API token with write access
        """
        body = {"force_build": True} if force_build else {}
        outcome = await self._request(f"/apps/{app_id}/deployments", token, "POST", body)
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to create deployment: {outcome.describe()}"
        if not outcome.is_object:
            return f"Failed to create deployment: {UNEXPECTED_FORMAT}"

        deployment = json_object(json_object(outcome.payload).get("deployment"))
        logger.info(f"Created deployment {deployment.get('id')} for app {app_id}")

        return (
            "Deployment created successfully!\n"
            f"Deployment ID: {deployment.get('id', 'Unknown')}\n"
            f"Status: {deployment.get('phase', 'UNKNOWN')}\n"
            f"Created: {deployment.get('created_at', 'Unknown')}"
        )

    async def get_deployment_logs(
        self,
        app_id: str,
        deployment_id: str,
        token: Optional[str] = None,
    ) -> str:
        """
        Fetch build and run logs for a deployment.

        Inline log entries are merged and sorted by timestamp. When the API
        only returns download URLs, those are listed instead.
        """
        outcome = await self._request(f"/apps/{app_id}/deployments/{deployment_id}/logs", token)
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to get deployment logs: {outcome.describe()}"
        if not outcome.is_object:
            return f"Failed to get deployment logs: {UNEXPECTED_FORMAT}"

        payload = json_object(outcome.payload)
        entries = [
            e for e in json_list(payload.get("historic")) + json_list(payload.get("live"))
            if isinstance(e, dict)
        ]

        if not entries:
            urls = [u for u in json_list(payload.get("historic_urls")) if isinstance(u, str)]
            if isinstance(payload.get("live_url"), str):
                urls.append(payload["live_url"])
            if urls:
                return f"Logs for Deployment {deployment_id} are available at:\n\n" + "\n".join(urls)
            return "No logs found for this deployment."

        entries.sort(key=lambda entry: parse_timestamp(entry.get("timestamp")))
        formatted = [
            f"[{e.get('timestamp')}] {e.get('component_name')}: {e.get('message')}"
            for e in entries
        ]
        return f"Logs for Deployment {deployment_id}:\n\n" + "\n".join(formatted)

    async def delete_app(self, app_id: str, token: Optional[str] = None) -> str:
        """Delete an app and all its deployments."""
        outcome = await self._request(f"/apps/{app_id}", token, "DELETE")
        if outcome is None:
            return self.missing_token_message()
        if isinstance(outcome, Failure):
            return f"Failed to delete app: {outcome.describe()}"

        logger.info(f"Deleted app {app_id}")
        return f"App {app_id} deleted successfully."
