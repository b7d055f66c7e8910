"""
Custom exceptions for the Vercel preview waiter.

This module defines the error taxonomy shared by the pollers, the API clients
and the CI entry point.
"""

from typing import Any


class PreviewWaiterError(Exception):
    """Base exception for preview waiter errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "PREVIEW_WAITER_ERROR"
        self.context = context or {}


class ConfigurationError(PreviewWaiterError):
    """Exception for configuration related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)


class AuthenticationError(PreviewWaiterError):
    """Exception for rejected API credentials."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "AUTHENTICATION_ERROR", context)
        self.service = service


class VercelAPIError(PreviewWaiterError):
    """Exception for Vercel API related errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "VERCEL_API_ERROR", context)
        self.status_code = status_code


class GitHubAPIError(PreviewWaiterError):
    """Exception for GitHub API related errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "GITHUB_API_ERROR", context)
        self.status_code = status_code


class BypassTokenMissing(PreviewWaiterError):
    """The bypass handshake answered without a usable _vercel_jwt cookie."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "BYPASS_TOKEN_MISSING", context)


class BypassRequestFailed(PreviewWaiterError):
    """The bypass handshake request itself failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "BYPASS_REQUEST_FAILED", context)
        self.status_code = status_code


class PollTimeoutError(PreviewWaiterError):
    """Exception raised when a polling loop exhausts its retry budget."""

    def __init__(
        self,
        message: str,
        phase: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "POLL_TIMEOUT", context)
        self.phase = phase


class NoDeploymentFoundError(PreviewWaiterError):
    """Exception raised when no deployment matches the commit."""

    def __init__(
        self,
        message: str,
        commit_sha: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "NO_DEPLOYMENT_FOUND", context)
        self.commit_sha = commit_sha


class UrlHealthTimeoutError(PollTimeoutError):
    """Exception raised when one or more preview URLs never became reachable."""

    def __init__(
        self,
        message: str,
        urls: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "url health", context)
        self.code = "URL_HEALTH_TIMEOUT"
        self.urls = urls or []
