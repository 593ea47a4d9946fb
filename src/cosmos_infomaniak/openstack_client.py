"""OpenStack image service client driving the ``openstack`` CLI"""

from __future__ import annotations

import subprocess

from cosmos_infomaniak.config import Settings
from cosmos_infomaniak.console import print_debug
from cosmos_infomaniak.models import CONTAINER_FORMAT, UploadRequest
from cosmos_infomaniak.process import CommandRunner, run_command


class OpenStackCLI:
    """Thin wrapper building argument vectors for ``openstack image`` commands"""

    def __init__(self, settings: Settings, runner: CommandRunner | None = None) -> None:
        self.settings: Settings = settings
        self.executable: str = settings.openstack_cli
        self._runner: CommandRunner = runner or run_command

    def _run(self, args: list[str], timeout: float | None = None) -> subprocess.CompletedProcess[str]:
        return self._runner(
            [self.executable, *args],
            capture_output=True,
            timeout=timeout,
            env=self.settings.environ or None,
        )

    def list_images(self) -> subprocess.CompletedProcess[str]:
        """Lightweight read-only call used as a connectivity probe"""
        return self._run(["image", "list"], timeout=self.settings.command_timeout)

    @staticmethod
    def create_args(request: UploadRequest) -> list[str]:
        """Arguments for ``image create``, in the order the CLI documents them"""
        args = [
            "image",
            "create",
            "--file",
            str(request.path),
            "--disk-format",
            request.disk_format.value,
            "--container-format",
            CONTAINER_FORMAT,
            "--visibility",
            request.visibility,
            "--min-disk",
            str(request.min_disk),
            "--min-ram",
            str(request.min_ram),
        ]
        if request.description:
            args.extend(["--description", request.description])
        if request.protected:
            args.append("--protected")
        args.append(request.name)
        return args

    def create_image(self, request: UploadRequest) -> subprocess.CompletedProcess[str]:
        """Upload the image, bounded by the request timeout"""
        return self._run(self.create_args(request), timeout=request.timeout)

    def show_image(self, name: str) -> subprocess.CompletedProcess[str]:
        return self._run(["image", "show", name], timeout=self.settings.command_timeout)

    def image_status(self, name: str) -> str:
        """Status column of an image, or an empty string if it cannot be read"""
        try:
            result = self._run(
                ["image", "show", name, "-f", "value", "-c", "status"],
                timeout=self.settings.command_timeout,
            )
        except OSError as e:
            print_debug(f"Status query error: {e}")
            return ""

        if result.returncode != 0:
            print_debug(f"Status query failed: {result.stderr.strip()}")
            return ""
        return result.stdout.strip()
