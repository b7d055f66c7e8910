"""
Deployment resolution poller for the Vercel preview waiter.

Waits for the team's build queue to drain, then cross-references project
metadata to find the preview aliases deployed for a commit.
"""

import asyncio
from collections.abc import Awaitable, Callable

import httpx
import structlog

from ..exceptions import AuthenticationError, PollTimeoutError, VercelAPIError
from ..models import DeploymentRecord, ProjectRecord, ResolvedTarget
from ..vercel_client import VercelClient
from .retry_budget import RetryBudget

logger = structlog.get_logger(__name__)


def find_in_progress(deployments: list[DeploymentRecord]) -> list[DeploymentRecord]:
    """Get the deployments still queued, building or initializing."""
    return [deployment for deployment in deployments if deployment.is_in_progress]


def match_commit_targets(
    projects: list[ProjectRecord], commit_sha: str
) -> list[ResolvedTarget]:
    """
    Build targets for every latest deployment of ``commit_sha``.

    The last automatic alias is the canonical preview URL.

    Args:
        projects: Projects with their latest deployments
        commit_sha: Commit to match

    Returns:
        Resolved targets in project order
    """
    targets: list[ResolvedTarget] = []

    for project in projects:
        for deployment in project.latest_deployments:
            if deployment.commit_sha != commit_sha:
                continue

            alias = deployment.canonical_alias
            if alias is None:
                logger.warning(
                    "Matching deployment has no aliases, skipping",
                    project=project.name,
                    deployment=deployment.name,
                    deployment_id=deployment.id,
                )
                continue

            targets.append(ResolvedTarget(url=alias, name=deployment.name))

    return targets


class DeploymentResolutionPoller:
    """
    Resolves the preview URLs for a commit once the team has no builds in flight.

    Any in-progress deployment in the team gates resolution, not only the ones
    for this commit, so a stale alias is never picked before Vercel reassigns it.
    """

    def __init__(
        self,
        vercel_client: VercelClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the deployment resolution poller.

        Args:
            vercel_client: Vercel API client
            sleep: Sleep coroutine used between attempts
        """
        self.vercel_client = vercel_client
        self._sleep = sleep

    async def resolve_deployment_urls(
        self, team_id: str, commit_sha: str, budget: RetryBudget
    ) -> list[ResolvedTarget]:
        """
        Wait for deployments to settle and resolve the commit's preview URLs.

        Args:
            team_id: Vercel team id or slug
            commit_sha: Commit to resolve
            budget: Retry budget

        Returns:
            Resolved targets, possibly empty

        Raises:
            PollTimeoutError: If deployments are still in progress when the
                budget runs out
        """
        iterations = budget.iterations

        for attempt in range(iterations):
            try:
                deployments = await self.vercel_client.list_deployments(team_id)
                in_progress = find_in_progress(deployments)

                if in_progress:
                    logger.info(
                        "Deployments still in progress, retrying",
                        deployments=[
                            {"name": d.name, "state": d.state} for d in in_progress
                        ],
                        attempt=attempt + 1,
                        total=iterations,
                    )
                else:
                    projects = await self.vercel_client.list_projects(team_id)
                    targets = match_commit_targets(projects, commit_sha)

                    logger.info(
                        "Resolved deployment URLs",
                        commit_sha=commit_sha,
                        targets=[t.model_dump() for t in targets],
                        attempt=attempt + 1,
                    )
                    return targets

            except (VercelAPIError, AuthenticationError, httpx.HTTPError) as e:
                logger.warning(
                    "Error in vercel call, retrying",
                    error=str(e),
                    attempt=attempt + 1,
                    total=iterations,
                )

            await self._sleep(budget.interval_seconds)

        raise PollTimeoutError(
            "Timeout reached: deployments did not finish in time",
            phase="deployment resolution",
            context={"team_id": team_id, "commit_sha": commit_sha},
        )
