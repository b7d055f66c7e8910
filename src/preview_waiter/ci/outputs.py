"""
Step outputs and failure reporting for GitHub Actions.
"""

import json
import sys
import uuid
from pathlib import Path
from typing import Any, TextIO

import structlog

logger = structlog.get_logger(__name__)


def _escape_command_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionOutputs:
    """
    Publishes step outputs and marks the step as failed.

    Outputs are appended to the ``GITHUB_OUTPUT`` file with the runner's
    heredoc syntax; failures are emitted as ``::error::`` workflow commands.
    """

    def __init__(self, output_path: str | None = None, stream: TextIO | None = None):
        """
        Initialize the outputs publisher.

        Args:
            output_path: Path of the runner's output file, if any
            stream: Stream for workflow commands (defaults to stdout)
        """
        self.output_path = output_path or None
        self.stream = stream or sys.stdout
        self.values: dict[str, str] = {}
        self._secrets: set[str] = set()
        self._failed = False

    @property
    def failed(self) -> bool:
        return self._failed

    def set_secret(self, value: str) -> None:
        """Ask the runner to mask ``value`` in all further log output."""
        self._secrets.add(value)
        self.stream.write(f"::add-mask::{_escape_command_data(value)}\n")
        self.stream.flush()

    def set_output(self, name: str, value: Any) -> None:
        """
        Set a step output.

        Args:
            name: Output name
            value: Output value, JSON encoded unless it is a string
        """
        text = value if isinstance(value, str) else json.dumps(value)
        self.values[name] = text

        if not self.output_path:
            shown = "***" if text in self._secrets else text
            logger.info("Step output", name=name, value=shown)
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with open(Path(self.output_path), "a", encoding="utf-8") as f:
            f.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")

        logger.debug("Step output written", name=name)

    def set_failed(self, message: str) -> None:
        """Mark the step as failed with a human readable message."""
        self._failed = True
        logger.error("Step failed", message=message)
        self.stream.write(f"::error::{_escape_command_data(message)}\n")
        self.stream.flush()
