"""Shared fixtures for the Test Lab step test suite."""

from __future__ import annotations

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from firebase_testlab.config import StepConfig


def encode_key(data: dict | str | bytes) -> str:
    """Base64-encode a key file the way CI secrets store it."""
    if isinstance(data, dict):
        data = json.dumps(data)
    if isinstance(data, str):
        data = data.encode()
    return base64.b64encode(data).decode()


def make_config(**overrides) -> StepConfig:
    """Create a StepConfig with sensible defaults for testing.

    This is the canonical config factory for tests. Prefer this over
    hand-building models so that new required fields are handled in one place.
    """
    base: dict = {
        "results_bucket": "mybucket",
        "options": "",
        "user": "ci@p1.iam.gserviceaccount.com",
        "project": "p1",
        "key_path": "/tmp/gcloudkey.json",
        "app_apk": "/tmp/app.apk",
    }
    base.update(overrides)
    return StepConfig(**base)


@pytest.fixture
def default_config() -> StepConfig:
    """A robo-test StepConfig for tests that don't care about specifics."""
    return make_config()


@pytest.fixture
def instrumentation_config() -> StepConfig:
    """StepConfig with a test APK configured."""
    return make_config(test_apk="/tmp/app-test.apk")


@pytest.fixture
def key_data() -> dict:
    """Minimal service-account key contents."""
    return {
        "type": "service_account",
        "project_id": "p1",
        "client_email": "e1",
        "private_key_id": "abc123",
    }


@pytest.fixture
def step_env(tmp_path, key_data) -> dict[str, str]:
    """A complete, valid step environment rooted in tmp_path."""
    app_apk = tmp_path / "app.apk"
    app_apk.write_bytes(b"PK\x03\x04")
    home = tmp_path / "home"
    home.mkdir()
    return {
        "GCLOUD_BUCKET": "mybucket",
        "GCLOUD_OPTIONS": "",
        "APP_APK": str(app_apk),
        "GCLOUD_KEY": encode_key(key_data),
        "HOME": str(home),
    }


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests that exercise gcloud/bitrise calls."""
    with patch("subprocess.run") as m:
        m.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="",
        )
        yield m
