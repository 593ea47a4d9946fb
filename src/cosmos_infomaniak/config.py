"""Process configuration assembled once from the environment"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

REQUIRED_CREDENTIAL_VARS: tuple[str, ...] = (
    "OS_USERNAME",
    "OS_PASSWORD",
    "OS_PROJECT_NAME",
    "OS_AUTH_URL",
)

REQUIRED_COMMANDS: tuple[str, ...] = ("curl", "file")

DEFAULT_OPENSTACK_CLI = "openstack"
DEFAULT_OPENSTACK_CMD_TIMEOUT = 60


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class OpenStackCredentials:
    """OpenStack credential variables as read from the environment"""

    username: str = ""
    password: str = field(default="", repr=False)
    project_name: str = ""
    auth_url: str = ""
    region_name: str = ""
    interface: str = ""

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> OpenStackCredentials:
        return cls(
            username=environ.get("OS_USERNAME", ""),
            password=environ.get("OS_PASSWORD", ""),
            project_name=environ.get("OS_PROJECT_NAME", ""),
            auth_url=environ.get("OS_AUTH_URL", ""),
            region_name=environ.get("OS_REGION_NAME", ""),
            interface=environ.get("OS_INTERFACE", ""),
        )

    def missing(self) -> list[str]:
        """Names of required variables that are empty, in declaration order"""
        values = {
            "OS_USERNAME": self.username,
            "OS_PASSWORD": self.password,
            "OS_PROJECT_NAME": self.project_name,
            "OS_AUTH_URL": self.auth_url,
        }
        return [var for var in REQUIRED_CREDENTIAL_VARS if not values[var].strip()]


@dataclass(frozen=True)
class Settings:
    """Immutable run configuration passed into every stage"""

    credentials: OpenStackCredentials
    environ: Mapping[str, str] = field(default_factory=dict, repr=False)
    openstack_cli: str = DEFAULT_OPENSTACK_CLI
    command_timeout: int = DEFAULT_OPENSTACK_CMD_TIMEOUT
    debug: bool = False

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], debug: bool = False) -> Settings:
        snapshot = MappingProxyType(dict(environ))
        timeout_value = snapshot.get("OPENSTACK_CMD_TIMEOUT", "")
        try:
            command_timeout = int(timeout_value) if timeout_value else DEFAULT_OPENSTACK_CMD_TIMEOUT
        except ValueError:
            command_timeout = DEFAULT_OPENSTACK_CMD_TIMEOUT

        return cls(
            credentials=OpenStackCredentials.from_environ(snapshot),
            environ=snapshot,
            openstack_cli=snapshot.get("OPENSTACK_CLI") or DEFAULT_OPENSTACK_CLI,
            command_timeout=command_timeout,
            debug=debug or _env_flag(snapshot.get("DEBUG")),
        )

    @property
    def required_commands(self) -> tuple[str, ...]:
        return (self.openstack_cli, *REQUIRED_COMMANDS)
