"""Data structures for image uploads"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

CONTAINER_FORMAT = "bare"

DEFAULT_VISIBILITY = "private"
DEFAULT_MIN_DISK_GB = 5
DEFAULT_MIN_RAM_MB = 512
DEFAULT_TIMEOUT_SECONDS = 3600

VISIBILITIES = ("private", "public")


class DiskFormat(str, Enum):
    """On-disk encoding of a virtual machine image"""

    QCOW2 = "qcow2"
    RAW = "raw"
    ISO = "iso"
    VMDK = "vmdk"
    VDI = "vdi"
    VPC = "vpc"
    VHD = "vhd"


# img is the usual extension for raw dumps
EXTENSION_FORMATS: dict[str, DiskFormat] = {
    "qcow2": DiskFormat.QCOW2,
    "img": DiskFormat.RAW,
    "raw": DiskFormat.RAW,
    "iso": DiskFormat.ISO,
    "vmdk": DiskFormat.VMDK,
    "vdi": DiskFormat.VDI,
    "vpc": DiskFormat.VPC,
    "vhd": DiskFormat.VHD,
}


def infer_disk_format(path: os.PathLike | str) -> DiskFormat:
    """Detect disk format from the file extension, defaulting to qcow2"""
    extension = Path(path).suffix.lower().lstrip(".")
    return EXTENSION_FORMATS.get(extension, DiskFormat.QCOW2)


class ImageStatus(str, Enum):
    """Lifecycle status reported by the image service"""

    QUEUED = "queued"
    SAVING = "saving"
    ACTIVE = "active"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str) -> ImageStatus:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def in_progress(self) -> bool:
        return self in (ImageStatus.QUEUED, ImageStatus.SAVING)


@dataclass(frozen=True)
class UploadRequest:
    """Everything needed for one ``openstack image create`` call"""

    path: Path
    name: str
    disk_format: DiskFormat
    visibility: str = DEFAULT_VISIBILITY
    min_disk: int = DEFAULT_MIN_DISK_GB
    min_ram: int = DEFAULT_MIN_RAM_MB
    protected: bool = False
    description: str | None = None
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    format_inferred: bool = False


@dataclass(frozen=True)
class FileInfo:
    """Local image file facts gathered before upload"""

    path: Path
    size: int
    mime_type: str = "application/octet-stream"

    @property
    def size_kb(self) -> int:
        return self.size // 1024

    @property
    def size_mb(self) -> int:
        return self.size // 1048576


@dataclass(frozen=True)
class UploadResult:
    """Remote status of an uploaded image, as last queried"""

    name: str
    status: ImageStatus
    raw_status: str = ""


def default_image_name(path: os.PathLike | str) -> str:
    """Image name derived from the filename without its last extension"""
    return Path(path).stem


def build_upload_request(
    image_path: os.PathLike | str,
    name: str | None = None,
    disk_format: str | None = None,
    visibility: str = DEFAULT_VISIBILITY,
    min_disk: int = DEFAULT_MIN_DISK_GB,
    min_ram: int = DEFAULT_MIN_RAM_MB,
    protected: bool = False,
    description: str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
) -> UploadRequest:
    """Apply defaults and format inference to parsed command-line values"""
    path = Path(image_path)
    if disk_format:
        resolved_format = DiskFormat(disk_format.lower())
        inferred = False
    else:
        resolved_format = infer_disk_format(path)
        inferred = True

    return UploadRequest(
        path=path,
        name=name or default_image_name(path),
        disk_format=resolved_format,
        visibility=visibility,
        min_disk=min_disk,
        min_ram=min_ram,
        protected=protected,
        description=description or None,
        timeout=timeout,
        format_inferred=inferred,
    )
