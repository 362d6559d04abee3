"""Step orchestration.

Usage::

    from firebase_testlab.config import load_config
    from firebase_testlab.step import run_step

    config = load_config()
    result = run_step(config)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from firebase_testlab.config import DeviceMatrix, StepConfig
from firebase_testlab.envman import export_results_dir
from firebase_testlab.gcloud import GcloudClient
from firebase_testlab.naming import gcs_object_name
from firebase_testlab.testlab import TestInvocation, build_test_args, parse_user_options

logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    """What one step run produced."""

    invocation: TestInvocation
    results_uri: str
    user_options: list[str] = field(default_factory=list)
    executed: bool = False


def run_step(
    config: StepConfig,
    *,
    matrix: DeviceMatrix | None = None,
    execute: bool = False,
    gcloud: GcloudClient | None = None,
    export: Callable[[str, str], str] = export_results_dir,
    name_factory: Callable[[], str] = gcs_object_name,
) -> StepResult:
    """Authenticate, assemble the Test Lab invocation and export the results dir.

    The test run itself only starts when ``execute`` is set; by default the
    invocation is returned for display. User options are parsed (so bad
    quoting still fails the step) but only reach gcloud on an executed run.

    Raises:
        CommandError: If a gcloud command fails
        ConfigInvalidError: If GCLOUD_OPTIONS has malformed quoting
        ExportError: If the results directory cannot be exported
    """
    gcloud = gcloud or GcloudClient()

    gcloud.authenticate(config.project, config.key_path, config.user)

    user_options = parse_user_options(config.options)
    logger.debug("User options: %s", user_options)

    results_dir = name_factory()
    invocation = build_test_args(config, results_dir, matrix, user_options)
    logger.debug("Test Lab args: %s", invocation.args)

    results_uri = export(config.results_bucket, results_dir)

    if execute:
        gcloud.run_test(invocation)

    return StepResult(
        invocation=invocation,
        results_uri=results_uri,
        user_options=user_options,
        executed=execute,
    )
