"""
Data models for the Vercel preview waiter.

Only the fields the pollers consume are modelled; everything else the Vercel
API returns is dropped at parse time.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class DeploymentState(str, Enum):
    """Deployment states reported by the Vercel API."""

    QUEUED = "QUEUED"
    BUILDING = "BUILDING"
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    CANCELED = "CANCELED"
    ERROR = "ERROR"
    DELETED = "DELETED"


# States that block URL resolution because aliases may still move.
IN_PROGRESS_STATES = frozenset(
    {
        DeploymentState.QUEUED.value,
        DeploymentState.BUILDING.value,
        DeploymentState.INITIALIZING.value,
    }
)


class DeploymentMeta(BaseModel):
    """Git metadata attached to a deployment."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    github_commit_sha: str | None = Field(
        default=None,
        validation_alias=AliasChoices("githubCommitSha", "github_commit_sha"),
    )


class DeploymentRecord(BaseModel):
    """A single deployment as listed by the Vercel API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", validation_alias=AliasChoices("uid", "id"))
    name: str = Field(default="")
    state: str = Field(
        default="", validation_alias=AliasChoices("state", "readyState")
    )
    meta: DeploymentMeta | None = Field(default=None)
    alias_urls: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("automaticAliases", "alias", "alias_urls"),
    )

    @field_validator("state", mode="before")
    @classmethod
    def normalize_state(cls, v: Any) -> str:
        """Upper-case states and treat missing ones as unknown."""
        if v is None:
            return ""
        return str(v).upper()

    @field_validator("alias_urls", mode="before")
    @classmethod
    def parse_alias_urls(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @property
    def commit_sha(self) -> str | None:
        return self.meta.github_commit_sha if self.meta else None

    @property
    def is_in_progress(self) -> bool:
        """Check if the platform is still working on this deployment."""
        return self.state in IN_PROGRESS_STATES

    @property
    def canonical_alias(self) -> str | None:
        """The last automatic alias in platform order, if any."""
        return self.alias_urls[-1] if self.alias_urls else None


class ProjectRecord(BaseModel):
    """A Vercel project with its latest deployments."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(default="")
    latest_deployments: list[DeploymentRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("latestDeployments", "latest_deployments"),
    )

    @field_validator("latest_deployments", mode="before")
    @classmethod
    def parse_latest_deployments(cls, v: Any) -> Any:
        return v or []


class ResolvedTarget(BaseModel):
    """A preview URL resolved for the target commit."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Preview hostname, without scheme")
    name: str = Field(..., description="Deployment name")

    def base_url(self) -> str:
        """Get an absolute base URL for health checks."""
        if "://" in self.url:
            return self.url
        return f"https://{self.url}"


class PollStatus(str, Enum):
    """Result of a polling loop or a single attempt."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    TRANSIENT_ERROR = "transient_error"


class PollOutcome(BaseModel):
    """Outcome of a URL health poll."""

    status: PollStatus
    url: str
    attempts: int = Field(default=0, description="Attempts made")
    detail: str | None = Field(default=None, description="Last failure detail")
    bypass_token: str | None = Field(
        default=None, description="Last bypass token obtained"
    )

    @property
    def is_success(self) -> bool:
        return self.status == PollStatus.SUCCESS
