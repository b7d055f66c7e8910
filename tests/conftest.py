"""
Pytest configuration and fixtures for preview waiter tests.
"""

import os
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

import preview_waiter.config
from preview_waiter.config import Settings
from preview_waiter.models import DeploymentRecord, ProjectRecord

COMMIT_SHA = "abc123"


@pytest.fixture(autouse=True)
def clean_action_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from step inputs and workflow context of the host."""
    for name in list(os.environ):
        if name.upper().startswith(("INPUT_", "GITHUB_")):
            monkeypatch.delenv(name, raising=False)
    preview_waiter.config._settings_instance = None


@pytest.fixture
def mock_settings() -> Settings:
    """Settings for testing."""
    return Settings(
        _env_file=None,
        token="test-github-token",
        vercel_token="test-vercel-token",
        vercel_team="test-team",
        max_timeout=10,
        check_interval=2,
        log_level="DEBUG",
    )


@pytest.fixture
def no_sleep() -> AsyncMock:
    """Sleep replacement that records the requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def make_transport() -> Callable[[Callable[[httpx.Request], Any]], httpx.MockTransport]:
    """Build an httpx mock transport from a request handler."""

    def _make(handler: Callable[[httpx.Request], Any]) -> httpx.MockTransport:
        return httpx.MockTransport(handler)

    return _make


@pytest.fixture
def sample_deployments_payload() -> dict[str, Any]:
    """Deployment listing with nothing in progress."""
    return {
        "deployments": [
            {
                "uid": "dpl_web",
                "name": "web",
                "url": "web-abc.vercel.app",
                "state": "READY",
                "meta": {"githubCommitSha": COMMIT_SHA},
            },
            {
                "uid": "dpl_docs",
                "name": "docs",
                "url": "docs-old.vercel.app",
                "state": "CANCELED",
                "meta": {"githubCommitSha": "fff999"},
            },
            {
                "uid": "dpl_api",
                "name": "api",
                "url": "api-old.vercel.app",
                "state": "ERROR",
                "meta": {},
            },
        ]
    }


@pytest.fixture
def sample_projects_payload() -> dict[str, Any]:
    """Project listing where only "web" was deployed for the commit."""
    return {
        "projects": [
            {
                "name": "web",
                "latestDeployments": [
                    {
                        "id": "dpl_web",
                        "name": "web",
                        "readyState": "READY",
                        "meta": {"githubCommitSha": COMMIT_SHA},
                        "automaticAliases": [
                            "web-abc.vercel.app",
                            "web-preview.vercel.app",
                        ],
                    }
                ],
            },
            {
                "name": "docs",
                "latestDeployments": [
                    {
                        "id": "dpl_docs",
                        "name": "docs",
                        "readyState": "READY",
                        "meta": {"githubCommitSha": "fff999"},
                        "automaticAliases": ["docs-preview.vercel.app"],
                    }
                ],
            },
        ]
    }


@pytest.fixture
def settled_deployments(sample_deployments_payload) -> list[DeploymentRecord]:
    return [
        DeploymentRecord.model_validate(item)
        for item in sample_deployments_payload["deployments"]
    ]


@pytest.fixture
def sample_projects(sample_projects_payload) -> list[ProjectRecord]:
    return [
        ProjectRecord.model_validate(item)
        for item in sample_projects_payload["projects"]
    ]
