"""Configuration loader for the Test Lab step.

Step inputs arrive as environment variables. Everything is read from one
mapping up front so the rest of the step only ever sees a ``StepConfig``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from firebase_testlab._constants import (
    APP_APK,
    GCLOUD_BUCKET,
    GCLOUD_KEY,
    GCLOUD_OPTIONS,
    GCLOUD_PROJECT,
    GCLOUD_USER,
    HOME,
    KEY_FILE_MODE,
    KEY_FILE_NAME,
    TEST_APK,
)

from .schema import DeviceMatrix, ServiceAccountKey, StepConfig

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigMissingError(ConfigError):
    """Raised when a required value is absent or empty."""

    pass


class ConfigInvalidError(ConfigError):
    """Raised when a value is present but malformed."""

    pass


class KeyFileWriteError(ConfigError):
    """Raised when the decoded key cannot be written to disk."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when a device matrix file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when a device matrix file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when device matrix validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


# =============================================================================
# Environment
# =============================================================================


def get_required_env(env: Mapping[str, str], name: str, allow_empty: bool = False) -> str:
    """Return a required variable, raising if it is unset (or empty).

    Raises:
        ConfigMissingError: If the variable is missing
    """
    value = env.get(name)
    if value is None or (not value and not allow_empty):
        raise ConfigMissingError(f"{name} is not defined!")
    return value


def get_optional_env(env: Mapping[str, str], name: str) -> str:
    return env.get(name) or ""


def decode_key(encoded: str) -> bytes:
    """Decode the base64 service-account key.

    Line breaks are dropped first, so wrapped output from ``base64 key.json``
    decodes the same as a single line.

    Raises:
        ConfigInvalidError: If the value is not valid base64
    """
    try:
        return base64.b64decode(encoded.replace("\r", "").replace("\n", ""), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigInvalidError(f"{GCLOUD_KEY} is not valid base64: {e}")  # noqa: B904


def parse_key_file(raw: bytes) -> ServiceAccountKey:
    """Parse the decoded key as a service-account JSON document.

    Raises:
        ConfigInvalidError: If the key is not a JSON object
    """
    try:
        return ServiceAccountKey.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigInvalidError(f"{GCLOUD_KEY} is not a valid JSON key file: {e}")  # noqa: B904


def resolve_identity(user: str, project: str, raw_key: bytes) -> tuple[str, str]:
    """Fill in whichever of user/project is empty from the key file.

    The key file is only parsed when at least one of them is missing.

    Raises:
        ConfigMissingError: If a value is empty both in the environment and
            in the key file
    """
    if user and project:
        return user, project

    key = parse_key_file(raw_key)

    if not user:
        user = key.client_email
        if not user:
            raise ConfigMissingError("Missing gcloud user")
        logger.debug("gcloud user read from key file: %s", user)

    if not project:
        project = key.project_id
        if not project:
            raise ConfigMissingError("Missing gcloud project")
        logger.debug("gcloud project read from key file: %s", project)

    return user, project


def check_artifact(name: str, path: str) -> None:
    """Raise if an APK path does not exist.

    Raises:
        ConfigInvalidError: If the file is missing
    """
    if not Path(path).exists():
        raise ConfigInvalidError(f"{name} does not exist: {path}")


def write_key_file(home_dir: str, raw_key: bytes) -> Path:
    """Write the decoded key to ``<home>/gcloudkey.json``, replacing any existing file.

    Raises:
        KeyFileWriteError: If the file cannot be written
    """
    key_path = Path(home_dir) / KEY_FILE_NAME
    try:
        key_path.write_bytes(raw_key)
        key_path.chmod(KEY_FILE_MODE)
    except OSError as e:
        raise KeyFileWriteError(f"Failed to write key file {key_path}: {e}")  # noqa: B904
    logger.debug("Wrote service-account key to %s", key_path)
    return key_path


def load_config(
    env: Mapping[str, str] | None = None,
    *,
    write_key: bool = True,
    check_artifacts: bool = True,
) -> StepConfig:
    """Load and validate step configuration from environment variables.

    Args:
        env: Variables to read (defaults to ``os.environ``)
        write_key: Persist the decoded key to ``$HOME``. When False the
            returned ``key_path`` is where it would have been written.
        check_artifacts: Fail when APP_APK (or TEST_APK, if set) is missing

    Returns:
        Fully populated StepConfig

    Raises:
        ConfigMissingError: If a required variable or identity field is missing
        ConfigInvalidError: If the key or an artifact path is invalid
        KeyFileWriteError: If the key file cannot be written
    """
    if env is None:
        env = os.environ

    results_bucket = get_required_env(env, GCLOUD_BUCKET)
    options = get_required_env(env, GCLOUD_OPTIONS, allow_empty=True)
    app_apk = get_required_env(env, APP_APK)
    test_apk = get_optional_env(env, TEST_APK)
    encoded_key = get_required_env(env, GCLOUD_KEY)
    home_dir = get_required_env(env, HOME)

    if check_artifacts:
        check_artifact(APP_APK, app_apk)
        if test_apk:
            check_artifact(TEST_APK, test_apk)

    raw_key = decode_key(encoded_key)
    user, project = resolve_identity(
        get_optional_env(env, GCLOUD_USER),
        get_optional_env(env, GCLOUD_PROJECT),
        raw_key,
    )

    if write_key:
        key_path = write_key_file(home_dir, raw_key)
    else:
        key_path = Path(home_dir) / KEY_FILE_NAME

    return StepConfig(
        results_bucket=results_bucket,
        options=options,
        user=user,
        project=project,
        key_path=str(key_path),
        app_apk=app_apk,
        test_apk=test_apk,
    )


# =============================================================================
# Device matrix file
# =============================================================================


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(f"Expected a mapping at the top of {path}")
    return content


def load_matrix(path: str | Path | None) -> DeviceMatrix:
    """Load device matrix overrides, or the defaults when ``path`` is None.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    if path is None:
        return DeviceMatrix()

    data = load_yaml(Path(path))
    try:
        return DeviceMatrix.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        error_messages = []
        for err in errors:
            loc = ".".join(str(x) for x in err["loc"])
            error_messages.append(f"  - {loc}: {err['msg']}")

        raise ConfigValidationError(  # noqa: B904
            "Device matrix validation failed:\n" + "\n".join(error_messages),
            errors=[dict(e) for e in errors],  # type: ignore[call-overload]
        )


def save_matrix(matrix: DeviceMatrix, path: str | Path) -> None:
    """Save a device matrix to YAML."""
    data = matrix.model_dump(mode="json")
    with open(Path(path), "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def generate_example_matrix_yaml() -> str:
    """Example device matrix file with every field at its default."""
    return """# Firebase Test Lab device matrix
# ================================
# Every field is optional; omitted fields keep the default shown here.
# Device and OS identifiers: gcloud firebase test android models list

device_id: NexusLowRes
os_version: "25"
locale: en
orientation: portrait

# Test timeout (gcloud duration)
timeout: 25m

# Directory pulled from the device after instrumentation tests
directories_to_pull: /sdcard
"""
