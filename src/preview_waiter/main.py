"""
Entry point for the Vercel preview waiter.

This module configures logging, wires the clients and pollers together and
maps the outcome of a single run to the CI step's exit status.
"""

import asyncio
import logging
import sys

import structlog

from .ci import ActionContext, ActionOutputs
from .config import Settings, get_settings
from .exceptions import PreviewWaiterError
from .github_client import GitHubClient
from .models import PollOutcome
from .polling.orchestrator import DeploymentWaitOrchestrator
from .vercel_client import VercelClient

logger = structlog.get_logger(__name__)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structured logging."""
    log_level = settings.log_level if settings else "INFO"
    log_format = settings.log_format if settings else "console"

    logging.basicConfig(
        level=getattr(logging, log_level), format="%(message)s", stream=sys.stderr
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def run_action(
    settings: Settings,
    context: ActionContext | None = None,
    outputs: ActionOutputs | None = None,
) -> list[PollOutcome]:
    """
    Run one wait for the current workflow run.

    Args:
        settings: Application settings
        context: Workflow run context (read from the environment if omitted)
        outputs: Step outputs publisher (built from the context if omitted)

    Returns:
        Health poll outcomes, one per preview URL
    """
    context = context or ActionContext()
    outputs = outputs or ActionOutputs(context.output_path)

    orchestrator = DeploymentWaitOrchestrator(
        settings=settings,
        context=context,
        github_client=GitHubClient(settings, api_url=context.api_url),
        vercel_client=VercelClient(settings),
        outputs=outputs,
    )
    return await orchestrator.run()


def main() -> None:
    """Main entry point."""
    context = ActionContext()
    outputs = ActionOutputs(context.output_path)

    try:
        settings = get_settings()
    except PreviewWaiterError as e:
        setup_logging()
        outputs.set_failed(str(e))
        sys.exit(1)

    setup_logging(settings)

    try:
        asyncio.run(run_action(settings, context, outputs))
    except PreviewWaiterError as e:
        outputs.set_failed(str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected failure")
        outputs.set_failed(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
