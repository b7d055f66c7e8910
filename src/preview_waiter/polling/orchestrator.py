"""
Wait orchestrator for the Vercel preview waiter.

This module sequences commit resolution, deployment resolution and the
concurrent per-URL health polls, and publishes the step outputs.
"""

import asyncio
from typing import TYPE_CHECKING

import structlog

from ..exceptions import NoDeploymentFoundError, PollTimeoutError, UrlHealthTimeoutError
from ..models import PollOutcome, ResolvedTarget
from .deployment_resolver import DeploymentResolutionPoller
from .url_health import UrlHealthPoller

if TYPE_CHECKING:
    from ..ci.context import ActionContext
    from ..ci.outputs import ActionOutputs
    from ..config import Settings
    from ..github_client import GitHubClient
    from ..vercel_client import VercelClient

logger = structlog.get_logger(__name__)


class DeploymentWaitOrchestrator:
    """
    Orchestrates a single wait for a commit's preview deployments.

    Health polls run as one task per resolved URL and are all joined; the step
    fails if any of them times out. A poll that raises cancels the others.
    """

    def __init__(
        self,
        settings: "Settings",
        context: "ActionContext",
        github_client: "GitHubClient",
        vercel_client: "VercelClient",
        outputs: "ActionOutputs",
        url_poller: UrlHealthPoller | None = None,
        resolver: DeploymentResolutionPoller | None = None,
    ):
        """
        Initialize the wait orchestrator.

        Args:
            settings: Application settings
            context: Workflow run context
            github_client: GitHub API client
            vercel_client: Vercel API client
            outputs: Step outputs publisher
            url_poller: URL health poller (built from settings if omitted)
            resolver: Deployment resolver (built from the Vercel client if omitted)
        """
        self.settings = settings
        self.context = context
        self.github_client = github_client
        self.vercel_client = vercel_client
        self.outputs = outputs
        self.url_poller = url_poller or UrlHealthPoller(settings)
        self.resolver = resolver or DeploymentResolutionPoller(vercel_client)

    async def run(self) -> list[PollOutcome]:
        """
        Run the wait end to end.

        Returns:
            One successful outcome per resolved target

        Raises:
            ConfigurationError: If the commit cannot be determined or a check URL
                cannot be built
            NoDeploymentFoundError: If no deployment was resolved
            UrlHealthTimeoutError: If any preview URL never answered
        """
        if self.settings.allow_inactive:
            logger.info("allow_inactive is a legacy input and has no effect")

        commit_sha = await self.github_client.resolve_commit_sha(self.context)

        logger.info(
            "Waiting for vercel deployments",
            commit_sha=commit_sha,
            team=self.settings.vercel_team,
            environment=self.settings.environment or None,
            max_timeout=self.settings.max_timeout,
            check_interval=self.settings.check_interval,
        )

        targets = await self._resolve_targets(commit_sha)
        self.outputs.set_output("urls", [target.model_dump() for target in targets])

        outcomes = await self._poll_targets(targets)

        tokens = [outcome.bypass_token for outcome in outcomes if outcome.bypass_token]
        if tokens:
            self.outputs.set_secret(tokens[-1])
            self.outputs.set_output("vercel_jwt", tokens[-1])

        timed_out = [outcome.url for outcome in outcomes if not outcome.is_success]
        if timed_out:
            raise UrlHealthTimeoutError(
                f"Timeout reached: Unable to connect to {', '.join(timed_out)}",
                urls=timed_out,
            )

        logger.info(
            "All preview URLs are reachable",
            urls=[outcome.url for outcome in outcomes],
        )
        return outcomes

    async def _resolve_targets(self, commit_sha: str) -> list[ResolvedTarget]:
        """Resolve the commit's targets, failing if there are none."""
        try:
            targets = await self.resolver.resolve_deployment_urls(
                self.settings.vercel_team,
                commit_sha,
                self.settings.deployment_budget,
            )
        except PollTimeoutError as e:
            raise NoDeploymentFoundError(
                "no vercel deployment found, exiting... "
                "(timed out waiting for in-progress deployments)",
                commit_sha=commit_sha,
            ) from e

        if not targets:
            raise NoDeploymentFoundError(
                f"no vercel deployment found for commit {commit_sha}, exiting...",
                commit_sha=commit_sha,
            )

        return targets

    async def _poll_targets(self, targets: list[ResolvedTarget]) -> list[PollOutcome]:
        """Poll every target concurrently, cancelling the rest if one raises."""
        budget = self.settings.url_budget

        logger.info(
            "Waiting for preview URLs",
            urls=[target.base_url() for target in targets],
            path=self.settings.path,
            iterations=budget.iterations,
        )

        tasks = [
            asyncio.create_task(
                self.url_poller.poll_until_healthy(
                    target.base_url(),
                    self.settings.path,
                    budget,
                    bypass_secret=self.settings.bypass_secret,
                )
            )
            for target in targets
        ]

        if not tasks:
            return []

        _, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

        # a raising poll is fatal, so the others are not left to spend their budget
        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

        return [task.result() for task in tasks]
