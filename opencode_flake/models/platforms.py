"""Platform keys — (os, cpu) pairs and their npm package names."""

from __future__ import annotations

import platform as _platform
from enum import Enum

from pydantic import BaseModel, ConfigDict

from opencode_flake.errors import UnsupportedPlatformError

BINARY_NAME = "opencode"
PACKAGE_PREFIX = "opencode"


class OperatingSystem(str, Enum):
    DARWIN = "darwin"
    LINUX = "linux"


class Cpu(str, Enum):
    ARM64 = "arm64"
    X64 = "x64"


class PlatformKey(BaseModel):
    """The (operating system, CPU) pair selecting a binary package."""

    model_config = ConfigDict(frozen=True)

    os: OperatingSystem
    cpu: Cpu

    @property
    def package_name(self) -> str:
        return f"{PACKAGE_PREFIX}-{self.os.value}-{self.cpu.value}"

    def __str__(self) -> str:
        return f"{self.os.value}-{self.cpu.value}"


# Nix system identifier -> platform key.  The only supported systems.
SUPPORTED_SYSTEMS: dict[str, PlatformKey] = {
    "aarch64-darwin": PlatformKey(os=OperatingSystem.DARWIN, cpu=Cpu.ARM64),
    "x86_64-darwin": PlatformKey(os=OperatingSystem.DARWIN, cpu=Cpu.X64),
    "aarch64-linux": PlatformKey(os=OperatingSystem.LINUX, cpu=Cpu.ARM64),
    "x86_64-linux": PlatformKey(os=OperatingSystem.LINUX, cpu=Cpu.X64),
}

PLATFORM_KEYS: tuple[PlatformKey, ...] = tuple(SUPPORTED_SYSTEMS.values())

_MACHINE_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


def platform_for_system(system: str) -> PlatformKey:
    """Return the platform key for a Nix system identifier.

    Raises UnsupportedPlatformError for anything outside SUPPORTED_SYSTEMS.
    """
    try:
        return SUPPORTED_SYSTEMS[system]
    except KeyError:
        raise UnsupportedPlatformError(
            f"Unsupported system: {system!r}. "
            f"Supported: {', '.join(sorted(SUPPORTED_SYSTEMS))}"
        ) from None


def current_system() -> str:
    """Derive the Nix system identifier of the running host."""
    machine = _platform.machine().lower()
    kernel = _platform.system().lower()
    arch = _MACHINE_ALIASES.get(machine)
    if arch is None or kernel not in ("darwin", "linux"):
        raise UnsupportedPlatformError(
            f"Unsupported host: machine={machine!r}, system={kernel!r}"
        )
    return f"{arch}-{kernel}"


def platform_package_names() -> list[str]:
    """All platform package names, in SUPPORTED_SYSTEMS order."""
    return [key.package_name for key in PLATFORM_KEYS]
