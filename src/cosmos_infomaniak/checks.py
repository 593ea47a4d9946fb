"""Preflight checks run before any call to the image service"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path
from typing import Callable

from cosmos_infomaniak.config import OpenStackCredentials
from cosmos_infomaniak.console import print_debug, print_error, print_info, print_warning
from cosmos_infomaniak.errors import CredentialError, DependencyError, ValidationError
from cosmos_infomaniak.models import FileInfo
from cosmos_infomaniak.process import CommandRunner, run_command

MIN_EXPECTED_IMAGE_SIZE = 1048576
DEFAULT_MIME_TYPE = "application/octet-stream"


def command_exists(command: str, which: Callable[[str], str | None] = shutil.which) -> bool:
    """Check if a command exists in PATH"""
    return which(command) is not None


def check_dependencies(
    commands: Iterable[str],
    which: Callable[[str], str | None] = shutil.which,
) -> None:
    """Report every missing executable, then fail once for all of them"""
    missing: list[str] = []
    for command in commands:
        if not command_exists(command, which):
            print_error(f"Required command not found: {command}")
            missing.append(command)

    if missing:
        print_error("Please install missing dependencies")
        raise DependencyError(missing)


def check_credentials(credentials: OpenStackCredentials) -> None:
    """Report every empty credential variable, then fail once for all of them"""
    missing = credentials.missing()
    for var in missing:
        print_error(f"Missing required environment variable: {var}")

    if missing:
        print_error("Please set all required OpenStack environment variables")
        raise CredentialError(missing)


def get_mime_type(path: os.PathLike | str, runner: CommandRunner | None = None) -> str:
    """MIME type according to file(1), or a generic binary type"""
    run = runner or run_command
    try:
        result = run(["file", "-b", "--mime-type", str(path)], capture_output=True, timeout=30)
    except OSError as e:
        print_debug(f"MIME detection error: {e}")
        return DEFAULT_MIME_TYPE

    mime_type = result.stdout.strip()
    if result.returncode != 0 or not mime_type:
        return DEFAULT_MIME_TYPE
    return mime_type


def validate_image_file(path: os.PathLike | str, runner: CommandRunner | None = None) -> FileInfo:
    """Ensure the image is a regular file and describe it"""
    image_path = Path(path)
    if not image_path.is_file():
        raise ValidationError(f"Image file not found: {image_path}")

    size = image_path.stat().st_size
    info = FileInfo(path=image_path, size=size, mime_type=get_mime_type(image_path, runner))

    if size < MIN_EXPECTED_IMAGE_SIZE:
        print_warning(f"Image file is very small ({info.size_kb}KB)")

    print_info(f"Image file: {image_path} ({info.size_mb}MB, {info.mime_type})")
    return info
