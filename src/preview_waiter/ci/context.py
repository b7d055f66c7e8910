"""
Workflow run context for the Vercel preview waiter.

GitHub Actions describes the triggering event through ``GITHUB_*`` environment
variables and a JSON event payload file.
"""

import json
from pathlib import Path
from typing import Any

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)


class ActionContext(BaseSettings):
    """Context of the workflow run that invoked the step."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    event_name: str = Field(default="", validation_alias="GITHUB_EVENT_NAME")
    event_path: str = Field(default="", validation_alias="GITHUB_EVENT_PATH")
    sha: str = Field(default="", validation_alias="GITHUB_SHA")
    repository: str = Field(default="", validation_alias="GITHUB_REPOSITORY")
    output_path: str = Field(default="", validation_alias="GITHUB_OUTPUT")
    api_url: str = Field(
        default="https://api.github.com", validation_alias="GITHUB_API_URL"
    )

    @property
    def is_pull_request(self) -> bool:
        """Check if the run was triggered by a pull request event."""
        return bool(self.event_payload().get("pull_request"))

    def event_payload(self) -> dict[str, Any]:
        """
        Load the event payload.

        Returns:
            The decoded payload, or an empty dict if none is available
        """
        if not self.event_path:
            return {}

        try:
            payload = json.loads(Path(self.event_path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "Failed to read event payload", path=self.event_path, error=str(e)
            )
            return {}

        return payload if isinstance(payload, dict) else {}

    def pull_request_number(self) -> int | None:
        """Get the pull request number for pull request events."""
        pull_request = self.event_payload().get("pull_request") or {}
        number = pull_request.get("number")
        return number if isinstance(number, int) else None
