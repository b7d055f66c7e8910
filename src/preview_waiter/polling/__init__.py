"""
Polling components for the Vercel preview waiter.

This package contains the retry budget shared by every loop, the deployment
resolution poller, the URL health poller and the orchestrator joining them.
"""

from .deployment_resolver import DeploymentResolutionPoller
from .orchestrator import DeploymentWaitOrchestrator
from .retry_budget import RetryBudget, compute_iterations
from .url_health import UrlHealthPoller

__all__ = [
    "DeploymentResolutionPoller",
    "DeploymentWaitOrchestrator",
    "RetryBudget",
    "UrlHealthPoller",
    "compute_iterations",
]
