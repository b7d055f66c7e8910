"""
Tests for the wait orchestrator, including the end-to-end flow.
"""

import asyncio
import io
import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from preview_waiter.ci import ActionContext, ActionOutputs
from preview_waiter.exceptions import (
    ConfigurationError,
    NoDeploymentFoundError,
    PollTimeoutError,
    UrlHealthTimeoutError,
)
from preview_waiter.github_client import GitHubClient
from preview_waiter.models import PollOutcome, PollStatus, ResolvedTarget
from preview_waiter.polling.deployment_resolver import DeploymentResolutionPoller
from preview_waiter.polling.orchestrator import DeploymentWaitOrchestrator
from preview_waiter.polling.url_health import UrlHealthPoller
from preview_waiter.vercel_client import VercelClient

COMMIT_SHA = "abc123"


@pytest.fixture
def push_context(monkeypatch) -> ActionContext:
    monkeypatch.setenv("GITHUB_SHA", COMMIT_SHA)
    monkeypatch.setenv("GITHUB_REPOSITORY", "acme/web")
    return ActionContext()


@pytest.fixture
def outputs() -> ActionOutputs:
    return ActionOutputs(stream=io.StringIO())


def _github_client(sha: str = COMMIT_SHA) -> AsyncMock:
    client = AsyncMock(spec=GitHubClient)
    client.resolve_commit_sha.return_value = sha
    return client


def _resolver(result) -> Mock:
    resolver = Mock(spec=DeploymentResolutionPoller)
    if isinstance(result, Exception):
        resolver.resolve_deployment_urls = AsyncMock(side_effect=result)
    else:
        resolver.resolve_deployment_urls = AsyncMock(return_value=result)
    return resolver


def _url_poller(*outcomes: PollOutcome) -> Mock:
    poller = Mock(spec=UrlHealthPoller)
    poller.poll_until_healthy = AsyncMock(side_effect=list(outcomes))
    return poller


class TestEndToEnd:
    """Run the whole flow against mocked Vercel and preview endpoints."""

    @pytest.mark.asyncio
    async def test_resolves_and_polls_preview(
        self,
        mock_settings,
        push_context,
        outputs,
        make_transport,
        no_sleep,
        sample_deployments_payload,
        sample_projects_payload,
    ):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(f"{request.method} {request.url.host}{request.url.path}")
            if request.url.host == "api.vercel.com":
                if request.url.path == "/v6/deployments":
                    return httpx.Response(200, json=sample_deployments_payload)
                if request.url.path == "/v9/projects":
                    return httpx.Response(200, json=sample_projects_payload)
            if request.url.host == "web-preview.vercel.app":
                return httpx.Response(200, text="hello")
            return httpx.Response(404)

        transport = make_transport(handler)
        vercel_client = VercelClient(mock_settings, transport=transport)
        orchestrator = DeploymentWaitOrchestrator(
            settings=mock_settings,
            context=push_context,
            github_client=GitHubClient(mock_settings),
            vercel_client=vercel_client,
            outputs=outputs,
            url_poller=UrlHealthPoller(
                mock_settings, transport=transport, sleep=no_sleep
            ),
            resolver=DeploymentResolutionPoller(vercel_client, sleep=no_sleep),
        )

        outcomes = await orchestrator.run()

        assert len(outcomes) == 1
        assert outcomes[0].is_success
        assert outcomes[0].url == "https://web-preview.vercel.app"
        assert outcomes[0].attempts == 1
        assert json.loads(outputs.values["urls"]) == [
            {"url": "web-preview.vercel.app", "name": "web"}
        ]
        assert "vercel_jwt" not in outputs.values
        assert seen == [
            "GET api.vercel.com/v6/deployments",
            "GET api.vercel.com/v9/projects",
            "GET web-preview.vercel.app/",
        ]
        no_sleep.assert_not_awaited()


class TestDeploymentWaitOrchestrator:
    """Test sequencing and failure mapping."""

    @pytest.mark.asyncio
    async def test_polls_every_target(self, mock_settings, push_context, outputs):
        targets = [
            ResolvedTarget(url="web-preview.vercel.app", name="web"),
            ResolvedTarget(url="admin-preview.vercel.app", name="admin"),
        ]
        url_poller = _url_poller(
            PollOutcome(status=PollStatus.SUCCESS, url="https://web-preview.vercel.app"),
            PollOutcome(
                status=PollStatus.SUCCESS, url="https://admin-preview.vercel.app"
            ),
        )
        resolver = _resolver(targets)

        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=url_poller,
            resolver=resolver,
        )
        outcomes = await orchestrator.run()

        assert [o.url for o in outcomes] == [
            "https://web-preview.vercel.app",
            "https://admin-preview.vercel.app",
        ]
        resolver.resolve_deployment_urls.assert_awaited_once_with(
            "test-team", COMMIT_SHA, mock_settings.deployment_budget
        )
        polled = [call.args for call in url_poller.poll_until_healthy.await_args_list]
        assert polled == [
            ("https://web-preview.vercel.app", "/", mock_settings.url_budget),
            ("https://admin-preview.vercel.app", "/", mock_settings.url_budget),
        ]
        for call in url_poller.poll_until_healthy.await_args_list:
            assert call.kwargs == {"bypass_secret": None}

    @pytest.mark.asyncio
    async def test_empty_resolution_fails(self, mock_settings, push_context, outputs):
        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=_url_poller(),
            resolver=_resolver([]),
        )

        with pytest.raises(NoDeploymentFoundError, match="no vercel deployment found"):
            await orchestrator.run()

        assert "urls" not in outputs.values

    @pytest.mark.asyncio
    async def test_resolution_timeout_fails(self, mock_settings, push_context, outputs):
        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=_url_poller(),
            resolver=_resolver(
                PollTimeoutError("timed out", phase="deployment resolution")
            ),
        )

        with pytest.raises(NoDeploymentFoundError, match="in-progress deployments"):
            await orchestrator.run()

    @pytest.mark.asyncio
    async def test_unresolvable_commit_fails_fast(
        self, mock_settings, push_context, outputs
    ):
        github_client = AsyncMock(spec=GitHubClient)
        github_client.resolve_commit_sha.side_effect = ConfigurationError(
            "Unable to determine SHA. Exiting..."
        )
        resolver = _resolver([])

        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            github_client,
            Mock(spec=VercelClient),
            outputs,
            url_poller=_url_poller(),
            resolver=resolver,
        )

        with pytest.raises(ConfigurationError):
            await orchestrator.run()

        resolver.resolve_deployment_urls.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_url_timeout_fails_after_joining_all(
        self, mock_settings, push_context, outputs
    ):
        targets = [
            ResolvedTarget(url="web-preview.vercel.app", name="web"),
            ResolvedTarget(url="admin-preview.vercel.app", name="admin"),
        ]
        url_poller = _url_poller(
            PollOutcome(status=PollStatus.SUCCESS, url="https://web-preview.vercel.app"),
            PollOutcome(
                status=PollStatus.TIMEOUT,
                url="https://admin-preview.vercel.app",
                attempts=5,
            ),
        )

        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=url_poller,
            resolver=_resolver(targets),
        )

        with pytest.raises(UrlHealthTimeoutError) as exc_info:
            await orchestrator.run()

        assert exc_info.value.urls == ["https://admin-preview.vercel.app"]
        assert "Unable to connect to https://admin-preview.vercel.app" in str(
            exc_info.value
        )
        assert url_poller.poll_until_healthy.await_count == 2
        assert len(json.loads(outputs.values["urls"])) == 2

    @pytest.mark.asyncio
    async def test_publishes_last_bypass_token(self, push_context, outputs):
        from preview_waiter.config import Settings

        settings = Settings(
            _env_file=None,
            token="t",
            vercel_token="v",
            vercel_password="hunter2",
        )
        targets = [
            ResolvedTarget(url="web-preview.vercel.app", name="web"),
            ResolvedTarget(url="admin-preview.vercel.app", name="admin"),
        ]
        url_poller = _url_poller(
            PollOutcome(
                status=PollStatus.SUCCESS,
                url="https://web-preview.vercel.app",
                bypass_token="jwt-web",
            ),
            PollOutcome(
                status=PollStatus.SUCCESS,
                url="https://admin-preview.vercel.app",
                bypass_token="jwt-admin",
            ),
        )

        orchestrator = DeploymentWaitOrchestrator(
            settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=url_poller,
            resolver=_resolver(targets),
        )
        await orchestrator.run()

        assert outputs.values["vercel_jwt"] == "jwt-admin"
        assert "::add-mask::jwt-admin" in outputs.stream.getvalue()
        for call in url_poller.poll_until_healthy.await_args_list:
            assert call.kwargs == {"bypass_secret": "hunter2"}

    @pytest.mark.asyncio
    async def test_configuration_error_from_poller_propagates(
        self, mock_settings, push_context, outputs
    ):
        url_poller = Mock(spec=UrlHealthPoller)
        url_poller.poll_until_healthy = AsyncMock(
            side_effect=ConfigurationError("Cannot build a check URL")
        )

        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=url_poller,
            resolver=_resolver([ResolvedTarget(url="web.vercel.app", name="web")]),
        )

        with pytest.raises(ConfigurationError, match="Cannot build a check URL"):
            await orchestrator.run()

    @pytest.mark.asyncio
    async def test_configuration_error_cancels_other_polls(
        self, mock_settings, push_context, outputs
    ):
        cancelled = asyncio.Event()

        async def poll(url, path, budget, bypass_secret=None):
            if url == "https://bad.vercel.app":
                raise ConfigurationError("Cannot build a check URL")
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        url_poller = Mock(spec=UrlHealthPoller)
        url_poller.poll_until_healthy = AsyncMock(side_effect=poll)

        orchestrator = DeploymentWaitOrchestrator(
            mock_settings,
            push_context,
            _github_client(),
            Mock(spec=VercelClient),
            outputs,
            url_poller=url_poller,
            resolver=_resolver(
                [
                    ResolvedTarget(url="web-preview.vercel.app", name="web"),
                    ResolvedTarget(url="bad.vercel.app", name="bad"),
                ]
            ),
        )

        with pytest.raises(ConfigurationError):
            await asyncio.wait_for(orchestrator.run(), timeout=5)

        assert cancelled.is_set()
        assert "vercel_jwt" not in outputs.values
