"""gcloud CLI wrapper for the Test Lab step."""

from __future__ import annotations

import logging

from firebase_testlab._constants import GCLOUD
from firebase_testlab.testlab import TestInvocation

from .runner import run_args, run_command

logger = logging.getLogger(__name__)


class GcloudClient:
    """Runs gcloud commands with output going straight to the terminal.

    Every method raises :class:`CommandError` when gcloud fails.
    """

    def __init__(self, program: str = GCLOUD):
        self.program = program

    def set_project(self, project: str) -> None:
        run_command(f"{self.program} config set project {project}")

    def activate_service_account(self, key_path: str, user: str) -> None:
        run_command(f"{self.program} auth activate-service-account --key-file {key_path} {user}")

    def authenticate(self, project: str, key_path: str, user: str) -> None:
        """Select the project, then log in as the service account."""
        self.set_project(project)
        self.activate_service_account(key_path, user)

    def run_test(self, invocation: TestInvocation) -> None:
        """Start the Test Lab run and wait for it to finish."""
        args = [self.program, *invocation.gcloud_args()]
        logger.info("Starting %s test, results in %s", invocation.test_type.value, invocation.results_dir)
        run_args(args)
