"""Argument assembly for ``gcloud firebase test android run``."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field

from firebase_testlab.config import ConfigInvalidError, DeviceMatrix, StepConfig, TestType

RUN_COMMAND = ["firebase", "test", "android", "run"]


@dataclass
class TestInvocation:
    """Assembled arguments for one Test Lab run."""

    __test__ = False

    test_type: TestType
    test_args: list[str]
    run_args: list[str]
    results_dir: str
    user_options: list[str] = field(default_factory=list)

    @property
    def args(self) -> list[str]:
        """Test arguments, the bare test type token, then app/device/results arguments."""
        return [*self.test_args, self.test_type.value, *self.run_args]

    def gcloud_args(self) -> list[str]:
        """Arguments for the gcloud CLI, with the test type passed as ``--type``."""
        return [
            *RUN_COMMAND,
            "--type",
            self.test_type.value,
            *self.test_args,
            *self.run_args,
            *self.user_options,
        ]


def parse_user_options(options: str) -> list[str]:
    """Split the GCLOUD_OPTIONS string with POSIX shell quoting rules.

    Raises:
        ConfigInvalidError: If the quoting is malformed
    """
    try:
        return shlex.split(options, posix=True)
    except ValueError as e:
        raise ConfigInvalidError(f"Cannot parse GCLOUD_OPTIONS: {e}")  # noqa: B904


def build_test_args(
    config: StepConfig,
    results_dir: str,
    matrix: DeviceMatrix | None = None,
    user_options: list[str] | None = None,
) -> TestInvocation:
    """Build the Test Lab argument list from config and the device matrix.

    Instrumentation arguments (``--test`` and the pull directory) come first
    when a test APK is configured; otherwise the run is a robo test.
    ``user_options`` are carried on the invocation for the gcloud command
    only and never appear in ``args``.
    """
    matrix = matrix or DeviceMatrix()
    test_type = config.test_type()

    test_args: list[str] = []
    if test_type is TestType.INSTRUMENTATION:
        test_args.extend(["--test", config.test_apk])
        test_args.append(f"--directories-to-pull={matrix.directories_to_pull}")

    run_args = [
        "--app",
        config.app_apk,
        "--device-ids",
        matrix.device_id,
        "--os-version-ids",
        matrix.os_version,
        "--locales",
        matrix.locale,
        "--orientations",
        matrix.orientation,
        "--timeout",
        matrix.timeout,
        f"--results-bucket={config.results_bucket}",
        f"--results-dir={results_dir}",
    ]

    return TestInvocation(
        test_type=test_type,
        test_args=test_args,
        run_args=run_args,
        results_dir=results_dir,
        user_options=list(user_options or []),
    )
