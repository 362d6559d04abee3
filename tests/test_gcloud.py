"""Tests for external command execution and the gcloud wrapper."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from firebase_testlab.gcloud import (
    CommandError,
    GcloudClient,
    run_args,
    run_captured,
    run_command,
)
from firebase_testlab.testlab import build_test_args

from tests.conftest import make_config


class TestRunCommand:
    """Tests for run_command() / run_args()."""

    def test_splits_on_whitespace(self, mock_subprocess):
        run_command("gcloud  config set   project p1")
        mock_subprocess.assert_called_once_with(["gcloud", "config", "set", "project", "p1"])

    def test_output_not_captured(self, mock_subprocess):
        run_command("gcloud version")
        _, kwargs = mock_subprocess.call_args
        assert "stdout" not in kwargs
        assert "capture_output" not in kwargs

    def test_nonzero_exit_raises(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=2)
        with pytest.raises(CommandError, match="exit code 2") as exc_info:
            run_command("gcloud config set project p1")
        assert exc_info.value.returncode == 2
        assert exc_info.value.command[0] == "gcloud"

    def test_launch_failure_raises(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("gcloud")):
            with pytest.raises(CommandError, match="Failed to start gcloud") as exc_info:
                run_command("gcloud version")
        assert exc_info.value.returncode is None

    def test_empty_command(self, mock_subprocess):
        with pytest.raises(CommandError):
            run_command("   ")
        mock_subprocess.assert_not_called()

    def test_run_args_keeps_spaces(self, mock_subprocess):
        run_args(["gcloud", "--key-file", "/path with space/key.json"])
        mock_subprocess.assert_called_once_with(["gcloud", "--key-file", "/path with space/key.json"])


class TestRunCaptured:
    """Tests for run_captured()."""

    def test_success(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=0, stdout="done\n")
        result = run_captured("bitrise", "envman", "add")
        assert result.success
        assert result.output == "done\n"
        assert result.command == ["bitrise", "envman", "add"]

    def test_combines_output(self, mock_subprocess):
        run_captured("bitrise", "envman")
        _, kwargs = mock_subprocess.call_args
        assert kwargs["stdout"] is subprocess.PIPE
        assert kwargs["stderr"] is subprocess.STDOUT

    def test_failure_reported_not_raised(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=1, stdout="boom")
        result = run_captured("bitrise", "envman")
        assert not result.success
        assert result.returncode == 1
        assert result.output == "boom"
        assert result.error == "exit status 1"

    def test_launch_failure(self):
        with patch("subprocess.run", side_effect=FileNotFoundError("no bitrise")):
            result = run_captured("bitrise", "envman")
        assert not result.success
        assert "no bitrise" in result.error


class TestGcloudClient:
    """Tests for GcloudClient command construction."""

    def test_set_project(self, mock_subprocess):
        GcloudClient().set_project("p1")
        mock_subprocess.assert_called_once_with(["gcloud", "config", "set", "project", "p1"])

    def test_activate_service_account(self, mock_subprocess):
        GcloudClient().activate_service_account("/tmp/gcloudkey.json", "e1")
        mock_subprocess.assert_called_once_with(
            [
                "gcloud",
                "auth",
                "activate-service-account",
                "--key-file",
                "/tmp/gcloudkey.json",
                "e1",
            ]
        )

    def test_authenticate_order(self, mock_subprocess):
        GcloudClient().authenticate("p1", "/tmp/gcloudkey.json", "e1")
        calls = [c.args[0] for c in mock_subprocess.call_args_list]
        assert calls[0][:3] == ["gcloud", "config", "set"]
        assert calls[1][:2] == ["gcloud", "auth"]

    def test_authenticate_stops_on_failure(self, mock_subprocess):
        mock_subprocess.return_value = MagicMock(returncode=1)
        with pytest.raises(CommandError):
            GcloudClient().authenticate("p1", "/tmp/gcloudkey.json", "e1")
        assert mock_subprocess.call_count == 1

    def test_custom_program(self, mock_subprocess):
        GcloudClient(program="/opt/google-cloud-sdk/bin/gcloud").set_project("p1")
        assert mock_subprocess.call_args.args[0][0] == "/opt/google-cloud-sdk/bin/gcloud"

    def test_run_test(self, mock_subprocess):
        invocation = build_test_args(make_config(), "2020-01-01_0:00:00.000000_abcd")
        GcloudClient().run_test(invocation)
        cmd = mock_subprocess.call_args.args[0]
        assert cmd[:7] == ["gcloud", "firebase", "test", "android", "run", "--type", "robo"]
        assert "--app" in cmd
