"""
Vercel API client for the preview waiter.

This module provides a small async client over the two Vercel REST endpoints
the deployment resolver needs: the team deployment listing and the team
project listing.
"""

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from .exceptions import AuthenticationError, VercelAPIError
from .models import DeploymentRecord, ProjectRecord

if TYPE_CHECKING:
    from .config import Settings

logger = structlog.get_logger(__name__)


class VercelClient:
    """
    Vercel REST API client.

    Every call opens a short-lived ``httpx.AsyncClient`` authenticated with the
    configured bearer token and bounded by the per-request timeout.
    """

    def __init__(
        self,
        settings: "Settings",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the Vercel client.

        Args:
            settings: Application settings
            transport: Optional transport override, used by tests
        """
        self.settings = settings
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.vercel_token}",
            "Accept": "application/json",
        }

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """Issue an authenticated GET and decode the JSON body."""
        url = f"{self.settings.vercel_api_url}{path}"
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.settings.effective_request_timeout,
        ) as client:
            response = await client.get(url, params=params, headers=self._headers())

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Vercel rejected the API token: {response.text}",
                service="vercel",
                context={"path": path, "status_code": response.status_code},
            )

        if response.status_code != 200:
            raise VercelAPIError(
                f"Vercel API request to {path} failed: {response.text}",
                status_code=response.status_code,
                context={"path": path},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise VercelAPIError(
                f"Vercel API returned invalid JSON for {path}",
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise VercelAPIError(
                f"Unexpected payload type from {path}: {type(payload)}",
                status_code=response.status_code,
            )
        return payload

    async def list_deployments(self, team_id: str) -> list[DeploymentRecord]:
        """
        List deployments for a team.

        Args:
            team_id: Vercel team id or slug

        Returns:
            List of deployment records in API order
        """
        payload = await self._get_json("/v6/deployments", {"teamId": team_id})

        try:
            deployments = [
                DeploymentRecord.model_validate(item)
                for item in payload.get("deployments") or []
            ]
        except ValidationError as e:
            raise VercelAPIError(f"Malformed deployment listing: {e}") from e

        logger.debug(
            "Retrieved deployments",
            team_id=team_id,
            count=len(deployments),
        )
        return deployments

    async def list_projects(self, team_id: str) -> list[ProjectRecord]:
        """
        List projects for a team, each with its latest deployments.

        Args:
            team_id: Vercel team id or slug

        Returns:
            List of project records in API order
        """
        payload = await self._get_json("/v9/projects", {"teamId": team_id})

        try:
            projects = [
                ProjectRecord.model_validate(item)
                for item in payload.get("projects") or []
            ]
        except ValidationError as e:
            raise VercelAPIError(f"Malformed project listing: {e}") from e

        logger.debug("Retrieved projects", team_id=team_id, count=len(projects))
        return projects
