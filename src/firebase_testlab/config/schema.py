"""Pydantic models for the Test Lab step configuration."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Enums
# =============================================================================


class TestType(str, Enum):
    """Firebase Test Lab test modes."""

    __test__ = False

    ROBO = "robo"
    INSTRUMENTATION = "instrumentation"


# =============================================================================
# Credential key file
# =============================================================================


class ServiceAccountKey(BaseModel):
    """The subset of a service-account JSON key used to backfill identity.

    Only ``project_id`` and ``client_email`` are read; every other key in the
    file is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    project_id: str = ""
    client_email: str = ""


# =============================================================================
# Device matrix
# =============================================================================


class DeviceMatrix(BaseModel):
    """Fixed device selection passed to every test invocation."""

    model_config = ConfigDict(extra="forbid")

    device_id: str = "NexusLowRes"
    os_version: str = "25"
    locale: str = "en"
    orientation: str = "portrait"
    timeout: str = Field(default="25m", description="gcloud duration, e.g. 25m or 1h")
    directories_to_pull: str = "/sdcard"

    @field_validator("os_version", mode="before")
    @classmethod
    def coerce_os_version(cls, v: object) -> object:
        """YAML reads ``os_version: 25`` as an int."""
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("device_id", "os_version", "locale", "orientation", "timeout")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


# =============================================================================
# Step configuration
# =============================================================================


class StepConfig(BaseModel):
    """Resolved configuration for one step run.

    Built once by :func:`firebase_testlab.config.load_config` and never
    modified afterwards.
    """

    model_config = ConfigDict(frozen=True)

    results_bucket: str
    options: str
    user: str
    project: str
    key_path: str
    app_apk: str
    test_apk: str = ""

    def has_test_apk(self) -> bool:
        """True when an instrumentation test APK was supplied."""
        return bool(self.test_apk)

    def test_type(self) -> TestType:
        if self.has_test_apk():
            return TestType.INSTRUMENTATION
        return TestType.ROBO
