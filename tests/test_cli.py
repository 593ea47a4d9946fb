"""Tests for the upload-image command."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from cosmos_infomaniak import cli
from cosmos_infomaniak.errors import CosmosError, UsageError
from cosmos_infomaniak.models import DiskFormat, ImageStatus, UploadRequest, UploadResult
from tests.mocks import CREDENTIAL_ENV, FakeRunner, all_present

UNSET_ENV: dict[str, str | None] = {
    "IMAGE_VISIBILITY": None,
    "IMAGE_MIN_DISK": None,
    "IMAGE_MIN_RAM": None,
    "TIMEOUT": None,
    "DEBUG": None,
    "OPENSTACK_CLI": None,
}


class _RecordingWorkflow:
    """Captures the request built by the command instead of uploading."""

    requests: list[UploadRequest] = []

    def __init__(self, request: UploadRequest, settings: Any) -> None:
        self.request = request
        self.settings = settings
        self.results: dict[str, dict[str, Any]] = {}
        _RecordingWorkflow.requests.append(request)

    def run(self) -> UploadResult:
        return UploadResult(name=self.request.name, status=ImageStatus.ACTIVE, raw_status="active")


@pytest.fixture
def recorded(monkeypatch: pytest.MonkeyPatch) -> list[UploadRequest]:
    _RecordingWorkflow.requests = []
    monkeypatch.setattr(cli, "ImageUploadWorkflow", _RecordingWorkflow)
    return _RecordingWorkflow.requests


@pytest.fixture
def wired_runner(monkeypatch: pytest.MonkeyPatch, fake_runner: FakeRunner) -> FakeRunner:
    """Route the real workflow's subprocess calls and PATH lookups to fakes."""
    monkeypatch.setattr("cosmos_infomaniak.workflow.run_command", fake_runner)
    monkeypatch.setattr("cosmos_infomaniak.workflow.shutil.which", all_present)
    return fake_runner


def _invoke(args: list[str], env: dict[str, str | None] | None = None):
    runner = CliRunner()
    full_env: dict[str, str | None] = {**UNSET_ENV, **CREDENTIAL_ENV, **(env or {})}
    return runner.invoke(cli.main, args, env=full_env)


def test_no_arguments_is_a_usage_error(wired_runner: FakeRunner) -> None:
    """Missing image path exits 1 before any check runs."""
    # When: Invoking without arguments
    result = _invoke([])

    # Then: Usage error, exit 1, nothing executed
    assert result.exit_code == 1
    assert "Missing argument" in result.output
    assert wired_runner.calls == []


def test_unknown_option_is_a_usage_error(image_file: Path, wired_runner: FakeRunner) -> None:
    result = _invoke([str(image_file), "--bogus"])

    assert result.exit_code == 1
    assert "No such option" in result.output
    assert wired_runner.calls == []


def test_parser_errors_are_raised_as_cosmos_usage_errors() -> None:
    """Outside standalone mode the parser failure surfaces as a handled error."""
    # When: Parsing an unknown option without click's standalone handling
    with pytest.raises(UsageError) as exc_info:
        cli.main.main(["myvm.qcow2", "--bogus"], standalone_mode=False)

    # Then: It is both a click usage error and a CosmosError exiting 1
    assert isinstance(exc_info.value, CosmosError)
    assert exc_info.value.exit_code == 1
    assert "No such option: --bogus" in exc_info.value.format_message()


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_help_prints_usage_and_exits_non_zero(flag: str, wired_runner: FakeRunner) -> None:
    result = _invoke([flag])

    assert result.exit_code == 1
    assert "Usage:" in result.output
    assert "--min-disk" in result.output
    assert "OS_AUTH_URL" in result.output
    assert wired_runner.calls == []


def test_invalid_visibility_is_rejected(image_file: Path, recorded: list[UploadRequest]) -> None:
    result = _invoke([str(image_file), "-v", "shared"])

    assert result.exit_code == 1
    assert recorded == []


def test_defaults_for_plain_qcow2(recorded: list[UploadRequest]) -> None:
    """myvm.qcow2 with no flags yields the documented defaults."""
    # When: Invoking with only the image path
    result = _invoke(["myvm.qcow2"])

    # Then: The request carries the defaults
    assert result.exit_code == 0, result.output
    request = recorded[0]
    assert request.name == "myvm"
    assert request.disk_format is DiskFormat.QCOW2
    assert request.visibility == "private"
    assert request.min_disk == 5
    assert request.min_ram == 512
    assert request.timeout == 3600
    assert request.protected is False
    assert "Detected disk format: qcow2" in result.output


def test_explicit_format_visibility_and_protected(recorded: list[UploadRequest]) -> None:
    result = _invoke(["disk.iso", "-f", "iso", "-v", "public", "--protected"])

    assert result.exit_code == 0, result.output
    request = recorded[0]
    assert request.disk_format is DiskFormat.ISO
    assert request.format_inferred is False
    assert request.visibility == "public"
    assert request.protected is True
    assert "Detected disk format" not in result.output


def test_disk_format_alias_and_remaining_options(recorded: list[UploadRequest]) -> None:
    result = _invoke(
        [
            "dump.img",
            "-t",
            "vmdk",
            "-n",
            "My Custom Image",
            "-d",
            "Ubuntu 22.04 LTS",
            "--min-disk",
            "20",
            "--min-ram",
            "2048",
            "--timeout",
            "600",
        ]
    )

    assert result.exit_code == 0, result.output
    request = recorded[0]
    assert request.disk_format is DiskFormat.VMDK
    assert request.name == "My Custom Image"
    assert request.description == "Ubuntu 22.04 LTS"
    assert (request.min_disk, request.min_ram, request.timeout) == (20, 2048, 600)


def test_environment_supplies_option_defaults(recorded: list[UploadRequest]) -> None:
    result = _invoke(
        ["myvm.qcow2"],
        env={"IMAGE_VISIBILITY": "public", "IMAGE_MIN_DISK": "8", "IMAGE_MIN_RAM": "1024", "TIMEOUT": "60"},
    )

    assert result.exit_code == 0, result.output
    request = recorded[0]
    assert request.visibility == "public"
    assert (request.min_disk, request.min_ram, request.timeout) == (8, 1024, 60)


def test_end_to_end_active_image_exits_zero(image_file: Path, wired_runner: FakeRunner) -> None:
    # Given: The image service reports the image active
    wired_runner.on("openstack", "image", "show", "myvm", "-f", "value", "-c", "status", stdout="active\n")

    # When: Uploading
    result = _invoke([str(image_file)])

    # Then: Success
    assert result.exit_code == 0, result.output
    assert "Image is active and ready to use" in result.output
    assert "Upload process completed successfully!" in result.output


def test_end_to_end_queued_image_exits_zero_with_warning(image_file: Path, wired_runner: FakeRunner) -> None:
    wired_runner.on("openstack", "image", "show", "myvm", "-f", "value", "-c", "status", stdout="queued\n")

    result = _invoke([str(image_file)])

    assert result.exit_code == 0, result.output
    assert "[WARNING] Image is still being processed (status: queued)" in result.output


def test_end_to_end_error_image_exits_one_with_dump(image_file: Path, wired_runner: FakeRunner) -> None:
    # Given: The image ends in error state
    wired_runner.on("openstack", "image", "show", "myvm", stdout="| checksum | None |\n| status | error |\n")
    wired_runner.on("openstack", "image", "show", "myvm", "-f", "value", "-c", "status", stdout="error\n")

    # When: Uploading
    result = _invoke([str(image_file)])

    # Then: Failure with the attribute dump in the output
    assert result.exit_code == 1
    assert "Image upload failed (status: error)" in result.output
    assert "| checksum | None |" in result.output


def test_end_to_end_missing_credential_exits_one(image_file: Path, wired_runner: FakeRunner) -> None:
    result = _invoke([str(image_file)], env={"OS_PROJECT_NAME": None})

    assert result.exit_code == 1
    assert "Missing required environment variable: OS_PROJECT_NAME" in result.output
    assert not wired_runner.ran("openstack")


def test_end_to_end_upload_timeout_exits_one(image_file: Path, wired_runner: FakeRunner) -> None:
    wired_runner.on("openstack", "image", "create", returncode=124)

    result = _invoke([str(image_file), "--timeout", "5"])

    assert result.exit_code == 1
    assert "Upload timeout after 5 seconds" in result.output
