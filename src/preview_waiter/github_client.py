"""
GitHub API client for the Vercel preview waiter.

Only used to find the commit a workflow run is about: the head of the pull
request for pull request events, the pushed commit otherwise.
"""

from typing import TYPE_CHECKING

import structlog
from github import Auth, Github, GithubException

from .exceptions import ConfigurationError, GitHubAPIError

if TYPE_CHECKING:
    from .ci.context import ActionContext
    from .config import Settings

logger = structlog.get_logger(__name__)


class GitHubClient:
    """GitHub API client authenticated with the workflow token."""

    def __init__(self, settings: "Settings", api_url: str = "https://api.github.com"):
        """
        Initialize the GitHub client.

        Args:
            settings: Application settings
            api_url: GitHub API base URL
        """
        self.settings = settings
        self.api_url = api_url
        self._github: Github | None = None

    def _get_github_instance(self) -> Github:
        """Get authenticated GitHub instance."""
        if self._github is None:
            if not self.settings.token:
                raise ConfigurationError("Required field `token` was not provided")
            self._github = Github(
                auth=Auth.Token(self.settings.token), base_url=self.api_url
            )
        return self._github

    async def get_pull_request_head_sha(self, repository: str, number: int) -> str:
        """
        Get the head commit of a pull request.

        Args:
            repository: Repository full name (owner/repo)
            number: Pull request number

        Returns:
            Head commit SHA
        """
        try:
            repo = self._get_github_instance().get_repo(repository)
            pr = repo.get_pull(number)
            sha = pr.head.sha
        except GithubException as e:
            logger.error(
                "Failed to get pull request",
                repo=repository,
                pr_number=number,
                error=str(e),
            )
            raise GitHubAPIError(
                f"Could not get information about the current pull request: {e}",
                status_code=e.status,
                context={"repository": repository, "pr_number": number},
            ) from e

        logger.info(
            "Resolved pull request head",
            repo=repository,
            pr_number=number,
            sha=sha,
        )
        return sha

    async def resolve_commit_sha(self, context: "ActionContext") -> str:
        """
        Determine the commit the workflow run is about.

        Args:
            context: Workflow run context

        Returns:
            Commit SHA

        Raises:
            ConfigurationError: If no commit can be determined
        """
        if context.is_pull_request:
            number = context.pull_request_number()
            if number is None:
                raise ConfigurationError("No pull request number was found")
            if not context.repository:
                raise ConfigurationError(
                    "GITHUB_REPOSITORY is required to look up the pull request"
                )
            sha = await self.get_pull_request_head_sha(context.repository, number)
        else:
            sha = context.sha

        if not sha:
            raise ConfigurationError("Unable to determine SHA. Exiting...")

        return sha
