"""gcloud and external command helpers."""

from .client import GcloudClient
from .runner import CommandError, CommandResult, run_args, run_captured, run_command

__all__ = [
    "GcloudClient",
    "CommandError",
    "CommandResult",
    "run_args",
    "run_captured",
    "run_command",
]
