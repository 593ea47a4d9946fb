"""Error types for the upload workflow and the Terraform task runner.

Every stage of a run either returns its result or raises one of these.
The command layer turns them into a printed diagnostic and ``exit_code``.
"""

from __future__ import annotations

import click


class CosmosError(Exception):
    """Base class for all handled failures"""

    exit_code: int = 1


class UsageError(click.UsageError, CosmosError):
    """Bad or missing command-line arguments, shown with the command usage"""

    exit_code = CosmosError.exit_code


class DependencyError(CosmosError):
    """One or more required executables are not on PATH"""

    def __init__(self, missing: list[str]) -> None:
        self.missing: list[str] = list(missing)
        super().__init__(f"Missing required commands: {', '.join(self.missing)}")


class CredentialError(CosmosError):
    """One or more required OpenStack environment variables are empty"""

    def __init__(self, missing: list[str]) -> None:
        self.missing: list[str] = list(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


class ValidationError(CosmosError):
    """The local image file is unusable"""


class OpenStackConnectionError(CosmosError):
    """The read-only connection probe against the image service failed"""


class UploadError(CosmosError):
    """The image create call timed out or exited non-zero"""

    def __init__(self, message: str, returncode: int | None = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.returncode: int | None = returncode
        self.timed_out: bool = timed_out


class VerificationError(CosmosError):
    """The uploaded image is missing or in error state"""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.details: str | None = details


class TerraformError(CosmosError):
    """A terraform invocation exited non-zero"""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command: str = command
        self.returncode: int = returncode
        self.stderr: str = stderr.strip()
        message = f"Terraform {command} failed with exit code {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr}"
        super().__init__(message)
