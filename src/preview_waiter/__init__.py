"""
Vercel Preview Waiter

Waits for the Vercel preview deployments of a commit to settle, resolves their
URLs and polls each one until it serves traffic.
"""

__version__ = "0.1.0"

from .config import Settings
from .exceptions import PreviewWaiterError
from .github_client import GitHubClient
from .polling import DeploymentWaitOrchestrator
from .vercel_client import VercelClient

__all__ = [
    "Settings",
    "GitHubClient",
    "VercelClient",
    "DeploymentWaitOrchestrator",
    "PreviewWaiterError",
]
