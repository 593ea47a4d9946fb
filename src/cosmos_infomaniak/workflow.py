"""Image upload workflow for Infomaniak OpenStack"""

from __future__ import annotations

import shutil
from typing import Any, Callable

from cosmos_infomaniak.checks import check_credentials, check_dependencies, validate_image_file
from cosmos_infomaniak.config import Settings
from cosmos_infomaniak.console import (
    print_debug,
    print_info,
    print_raw,
    print_success,
    print_warning,
)
from cosmos_infomaniak.errors import OpenStackConnectionError, UploadError, VerificationError
from cosmos_infomaniak.models import FileInfo, ImageStatus, UploadRequest, UploadResult
from cosmos_infomaniak.openstack_client import OpenStackCLI
from cosmos_infomaniak.process import TIMEOUT_EXIT_CODE, CommandRunner, run_command

SEPARATOR = "=" * 42


class ImageUploadWorkflow:
    """Validate, upload and verify one image.

    Stages run strictly in order and the first failure propagates, so the
    upload is never attempted before the connection probe has passed.
    """

    def __init__(
        self,
        request: UploadRequest,
        settings: Settings,
        client: OpenStackCLI | None = None,
        which: Callable[[str], str | None] | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.request: UploadRequest = request
        self.settings: Settings = settings
        self._which: Callable[[str], str | None] = which or shutil.which
        self._runner: CommandRunner = runner or run_command
        self.client: OpenStackCLI = client or OpenStackCLI(settings, runner=self._runner)

        self.file_info: FileInfo | None = None
        self.result: UploadResult | None = None

        # Per-stage outcome, in execution order
        self.results: dict[str, dict[str, Any]] = {}

    def run(self) -> UploadResult:
        """Run every stage, stopping at the first failure"""
        print_info(SEPARATOR)
        print_info("Upload Image to Infomaniak OpenStack")
        print_info(SEPARATOR)

        self._stage("dependencies", self.check_dependencies)
        self._stage("credentials", self.check_credentials)
        self._stage("image_file", self.validate_image_file)
        self._stage("connection", self.test_connection)
        self.print_summary()
        self._stage("upload", self.upload)
        self._stage("verification", self.verify)

        if self.result is None:
            raise VerificationError(f"Could not find uploaded image: {self.request.name}")
        return self.result

    def _stage(self, component: str, step: Callable[[], str]) -> None:
        try:
            details = step()
        except Exception as e:
            self.results[component] = {
                "success": False,
                "details": f"{e.__class__.__name__}: {e}",
            }
            raise
        self.results[component] = {"success": True, "details": details}

    def check_dependencies(self) -> str:
        check_dependencies(self.settings.required_commands, which=self._which)
        return ", ".join(self.settings.required_commands)

    def check_credentials(self) -> str:
        check_credentials(self.settings.credentials)
        credentials = self.settings.credentials
        return f"{credentials.username}@{credentials.project_name}"

    def validate_image_file(self) -> str:
        self.file_info = validate_image_file(self.request.path, runner=self._runner)
        return f"{self.file_info.size_mb}MB {self.file_info.mime_type}"

    def test_connection(self) -> str:
        """Probe the image service with a read-only list call"""
        print_info("Testing OpenStack connection...")
        try:
            result = self.client.list_images()
        except OSError as e:
            raise OpenStackConnectionError(f"Failed to run {self.client.executable}: {e}") from e

        if result.returncode != 0:
            print_debug(f"image list stderr: {result.stderr.strip()}")
            raise OpenStackConnectionError(
                "Failed to connect to OpenStack. Check credentials and configuration."
            )

        print_success("OpenStack connection successful")
        return self.settings.credentials.auth_url

    def print_summary(self) -> None:
        request = self.request
        print_info(f"Image Name: {request.name}")
        print_info(f"Disk Format: {request.disk_format.value}")
        print_info(f"Visibility: {request.visibility}")
        print_info(f"Min Disk: {request.min_disk}GB")
        print_info(f"Min RAM: {request.min_ram}MB")
        if request.protected:
            print_info("Protected: Yes")
        if self.settings.credentials.region_name:
            print_info(f"Region: {self.settings.credentials.region_name}")
        print_info(SEPARATOR)

    def upload(self) -> str:
        """Create the image and show what the service recorded"""
        request = self.request
        print_info(f"Preparing to upload image: {request.name}")
        print_info(f"Starting image upload (timeout: {request.timeout}s)...")

        try:
            result = self.client.create_image(request)
        except OSError as e:
            raise UploadError(f"Image upload could not start: {e}") from e

        if result.returncode == TIMEOUT_EXIT_CODE:
            raise UploadError(
                f"Upload timeout after {request.timeout} seconds",
                returncode=result.returncode,
                timed_out=True,
            )
        if result.returncode != 0:
            if result.stderr.strip():
                print_raw(result.stderr.strip())
            raise UploadError(
                f"Image upload failed with exit code: {result.returncode}",
                returncode=result.returncode,
            )

        print_success(f"Image uploaded successfully: {request.name}")

        print_info("Retrieving image details...")
        details = self._image_details(request.name)
        if details:
            print_raw(details)
        else:
            print_warning(f"Could not retrieve image details for {request.name}")

        return request.name

    def _image_details(self, name: str) -> str | None:
        """Full attribute dump of an image, or None if it cannot be read"""
        try:
            result = self.client.show_image(name)
        except OSError as e:
            print_debug(f"Image details error: {e}")
            return None

        if result.returncode != 0 or not result.stdout.strip():
            return None
        return result.stdout.rstrip()

    def verify(self) -> str:
        """Check the remote status once; in-flight processing is not awaited"""
        name = self.request.name
        print_info("Verifying image upload...")

        raw_status = self.client.image_status(name)
        if not raw_status:
            raise VerificationError(f"Could not find uploaded image: {name}")

        status = ImageStatus.parse(raw_status)
        if status is ImageStatus.ERROR:
            details = self._image_details(name)
            if not details:
                print_warning(f"Could not retrieve image attributes for {name}")
            raise VerificationError("Image upload failed (status: error)", details=details)

        if status is ImageStatus.ACTIVE:
            print_success("Image is active and ready to use")
        elif status.in_progress:
            print_warning(f"Image is still being processed (status: {raw_status})")
        else:
            print_warning(f"Image status: {raw_status}")

        self.result = UploadResult(name=name, status=status, raw_status=raw_status)
        return raw_status
