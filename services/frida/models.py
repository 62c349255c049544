"""Data models and errors used by the frida-server manager."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Tuple

from services.frida.versioning import extract_asset_version


class PlatformTag(str, Enum):
    """Architecture names used in frida-server release asset names."""

    ARM64 = "arm64"
    ARM = "arm"
    X86_64 = "x86_64"
    X86 = "x86"


class ArchiveFormat(str, Enum):
    """Container formats recognised by magic-number sniffing."""

    XZ = "xz"
    GZIP = "gzip"
    ELF = "elf"
    UNKNOWN = "unknown"


class SupervisorState(str, Enum):
    IDLE = "idle"
    INSTALLING = "installing"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file listed in a release manifest."""

    name: str
    download_url: str
    size: int | None = None

    @property
    def version(self) -> str | None:
        return extract_asset_version(self.name)


@dataclass(frozen=True)
class ReleaseIndex:
    """Release metadata and the assets it offers."""

    version: str | None
    assets: Tuple[ReleaseAsset, ...] = ()


@dataclass
class DownloadSession:
    """Transient bookkeeping for a single fetch and unpack."""

    total_bytes: int = 0
    bytes_transferred: int = 0
    detected_format: ArchiveFormat | None = None

    @property
    def fraction(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return min(1.0, self.bytes_transferred / self.total_bytes)


@dataclass(frozen=True)
class FetchResult:
    """Where the fetched payload was written and which asset it came from."""

    path: Path
    asset_name: str
    session: DownloadSession = field(default_factory=DownloadSession, compare=False)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a shell command run through the elevation mechanism."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def first_line(self) -> str:
        for line in self.stdout.splitlines():
            stripped = line.strip()
            if stripped:
                return stripped
        return ""


class FridaError(RuntimeError):
    """Base class for failures raised inside the management core."""


class NetworkFailure(FridaError):
    """Raised when the release index or an asset cannot be retrieved."""


class AssetNotFound(FridaError):
    """Raised when no release asset matches the target platform."""


class ArchiveError(FridaError):
    """Raised when a downloaded payload cannot be unpacked."""


class UnknownFormat(ArchiveError):
    """Raised when the payload's magic number is not recognised."""


class BinaryInvalid(FridaError):
    """Raised when the installed file is not an ELF executable."""


class BinaryMissing(FridaError):
    """Raised when no server binary has been installed yet."""


class PermissionDenied(FridaError):
    """Raised when the server binary cannot be made executable."""


class NotRooted(FridaError):
    """Raised when no elevation mechanism is available."""


class StartupTimeout(FridaError):
    """Raised when the server was launched but is not listening."""


class ElevationError(FridaError):
    """Raised when the elevation mechanism itself cannot be invoked."""


__all__ = [
    "ArchiveError",
    "ArchiveFormat",
    "AssetNotFound",
    "BinaryInvalid",
    "BinaryMissing",
    "CommandResult",
    "DownloadSession",
    "ElevationError",
    "FetchResult",
    "FridaError",
    "NetworkFailure",
    "NotRooted",
    "PermissionDenied",
    "PlatformTag",
    "ReleaseAsset",
    "ReleaseIndex",
    "StartupTimeout",
    "SupervisorState",
    "UnknownFormat",
]
