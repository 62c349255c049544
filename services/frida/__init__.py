"""Public API for the frida-server management package."""

from __future__ import annotations

from services.frida.archive import detect_format, normalize_download
from services.frida.architecture import DEFAULT_PLATFORM, host_abis, identify_platform
from services.frida.background import run_in_background
from services.frida.builder import build_frida_manager, resolve_home_directory
from services.frida.constants import (
    API_URL,
    DEFAULT_PORT,
    HOME_ENV,
    LOCAL_RELEASE_ENV,
    NO_PROCESS_MESSAGE,
)
from services.frida.elevation import ElevatedShell, RootProbe, SuShell
from services.frida.fetcher import ArtifactFetcher
from services.frida.manager import FridaManager
from services.frida.models import (
    ArchiveError,
    ArchiveFormat,
    AssetNotFound,
    BinaryInvalid,
    BinaryMissing,
    CommandResult,
    DownloadSession,
    ElevationError,
    FetchResult,
    FridaError,
    NetworkFailure,
    NotRooted,
    PermissionDenied,
    PlatformTag,
    ReleaseAsset,
    ReleaseIndex,
    StartupTimeout,
    SupervisorState,
    UnknownFormat,
)
from services.frida.progress import ProgressReporter, clamp_progress
from services.frida.providers import (
    GitHubReleaseProvider,
    LocalFolderReleaseProvider,
    ReleaseProvider,
    select_server_asset,
)
from services.frida.supervisor import ProcessSupervisor
from services.frida.validator import is_valid_binary

__all__ = [
    "API_URL",
    "DEFAULT_PLATFORM",
    "DEFAULT_PORT",
    "HOME_ENV",
    "LOCAL_RELEASE_ENV",
    "NO_PROCESS_MESSAGE",
    "ArchiveError",
    "ArchiveFormat",
    "ArtifactFetcher",
    "AssetNotFound",
    "BinaryInvalid",
    "BinaryMissing",
    "CommandResult",
    "DownloadSession",
    "ElevatedShell",
    "ElevationError",
    "FetchResult",
    "FridaError",
    "FridaManager",
    "GitHubReleaseProvider",
    "LocalFolderReleaseProvider",
    "NetworkFailure",
    "NotRooted",
    "PermissionDenied",
    "PlatformTag",
    "ProcessSupervisor",
    "ProgressReporter",
    "ReleaseAsset",
    "ReleaseIndex",
    "ReleaseProvider",
    "RootProbe",
    "StartupTimeout",
    "SuShell",
    "SupervisorState",
    "UnknownFormat",
    "build_frida_manager",
    "clamp_progress",
    "detect_format",
    "host_abis",
    "identify_platform",
    "is_valid_binary",
    "normalize_download",
    "resolve_home_directory",
    "run_in_background",
    "select_server_asset",
]
