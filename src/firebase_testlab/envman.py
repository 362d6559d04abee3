"""Publishes step outputs through ``bitrise envman``."""

from __future__ import annotations

import logging
from collections.abc import Callable

from firebase_testlab._constants import BITRISE, GCS_RESULTS_DIR
from firebase_testlab.gcloud.runner import CommandResult, run_captured

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when envman fails to register an output variable."""

    def __init__(self, message: str, key: str, value: str, output: str = ""):
        super().__init__(message)
        self.key = key
        self.value = value
        self.output = output


def gcs_uri(bucket: str, obj: str) -> str:
    return f"gs://{bucket}/{obj}"


def envman_add(
    key: str,
    value: str,
    runner: Callable[..., CommandResult] = run_captured,
) -> None:
    """Register ``key=value`` for later steps.

    Raises:
        ExportError: If envman exits non-zero or cannot be started
    """
    result = runner(BITRISE, "envman", "add", "--key", key, "--value", value)
    if not result.success:
        raise ExportError(
            f"Failed to export {key}, error: {result.error}",
            key=key,
            value=value,
            output=result.output,
        )


def export_results_dir(
    bucket: str,
    obj: str,
    runner: Callable[..., CommandResult] = run_captured,
) -> str:
    """Export ``GCS_RESULTS_DIR=gs://<bucket>/<obj>`` and return the URI."""
    uri = gcs_uri(bucket, obj)
    logger.info("Exporting %s %s", GCS_RESULTS_DIR, uri)
    envman_add(GCS_RESULTS_DIR, uri, runner=runner)
    return uri
