"""
URL health poller for the Vercel preview waiter.

This module polls a single preview URL until it answers, fetching a fresh
bypass token on every attempt when password protection is configured.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import httpx
import structlog

from ..exceptions import BypassRequestFailed, BypassTokenMissing, ConfigurationError
from ..models import PollOutcome, PollStatus
from .bypass import BYPASS_COOKIE_NAME, fetch_bypass_token
from .retry_budget import RetryBudget

if TYPE_CHECKING:
    from ..config import Settings

logger = structlog.get_logger(__name__)


def resolve_check_url(base_url: str, path: str) -> str:
    """
    Resolve the health check path against a preview URL.

    Args:
        base_url: Absolute preview URL
        path: Path (or relative reference) to check

    Returns:
        The absolute URL to request

    Raises:
        ConfigurationError: If the URL cannot be resolved
    """
    try:
        base = httpx.URL(base_url)
        if not base.scheme or not base.host:
            raise ConfigurationError(
                f"Cannot build a check URL from {base_url!r}: "
                "an absolute base URL is required",
                context={"url": base_url, "path": path},
            )
        return str(base.join(path))
    except httpx.InvalidURL as e:
        raise ConfigurationError(
            f"Cannot build a check URL from {base_url!r} and {path!r}: {e}",
            context={"url": base_url, "path": path},
        ) from e


class UrlHealthPoller:
    """
    Polls a preview URL until it serves traffic or the budget runs out.

    Any response that completes without a transport error counts as healthy,
    since previews return transient 404/502 while aliases propagate. Set
    ``require_success_status`` to only accept statuses below 400.
    """

    def __init__(
        self,
        settings: "Settings",
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the URL health poller.

        Args:
            settings: Application settings
            transport: Optional transport override, used by tests
            sleep: Sleep coroutine used between attempts
        """
        self.settings = settings
        self._transport = transport
        self._sleep = sleep

    async def poll_until_healthy(
        self,
        url: str,
        path: str,
        budget: RetryBudget,
        bypass_secret: str | None = None,
    ) -> PollOutcome:
        """
        Poll ``url`` joined with ``path`` until it answers.

        Args:
            url: Absolute preview URL
            path: Path to check
            budget: Retry budget for this URL
            bypass_secret: Optional password protection secret

        Returns:
            SUCCESS on the first answered attempt, TIMEOUT once the budget is spent

        Raises:
            ConfigurationError: If ``url`` and ``path`` do not form a valid URL
        """
        # the bypass POST targets the same URL, so validate before any request
        check_url = resolve_check_url(url, path)
        iterations = budget.iterations
        bypass_token: str | None = None
        last_error: str | None = None

        for attempt in range(iterations):
            headers: dict[str, str] = {}

            if bypass_secret:
                try:
                    bypass_token = await fetch_bypass_token(
                        url,
                        bypass_secret,
                        timeout=self.settings.effective_request_timeout,
                        transport=self._transport,
                    )
                except (BypassTokenMissing, BypassRequestFailed) as e:
                    last_error = str(e)
                    logger.warning(
                        "Bypass token unavailable, retrying",
                        url=url,
                        attempt=attempt + 1,
                        total=iterations,
                        error=last_error,
                    )
                    await self._sleep(budget.interval_seconds)
                    continue
                headers["Cookie"] = f"{BYPASS_COOKIE_NAME}={bypass_token}"

            result = await self._check_once(check_url, headers)
            if result is None:
                logger.info(
                    "Received success status code",
                    url=check_url,
                    attempt=attempt + 1,
                )
                return PollOutcome(
                    status=PollStatus.SUCCESS,
                    url=url,
                    attempts=attempt + 1,
                    bypass_token=bypass_token,
                )

            last_error = result
            logger.info(
                "Preview not reachable yet",
                url=check_url,
                attempt=attempt + 1,
                total=iterations,
                error=last_error,
            )
            await self._sleep(budget.interval_seconds)

        logger.error("Timeout reached", url=url, attempts=iterations)
        return PollOutcome(
            status=PollStatus.TIMEOUT,
            url=url,
            attempts=iterations,
            detail=last_error,
            bypass_token=bypass_token,
        )

    async def _check_once(self, check_url: str, headers: dict[str, str]) -> str | None:
        """
        Issue one health check request.

        Returns:
            None if the attempt succeeded, otherwise a failure description
        """
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.effective_request_timeout,
            ) as client:
                response = await client.get(check_url, headers=headers)
        except httpx.HTTPError as e:
            return f"GET error, no response received: {e}"

        if self.settings.require_success_status and response.status_code >= 400:
            return f"GET status: {response.status_code}"

        logger.debug(
            "Health check answered", url=check_url, status=response.status_code
        )
        return None
