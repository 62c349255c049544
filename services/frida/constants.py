"""Constants shared across the frida-server management modules."""

from __future__ import annotations

GITHUB_REPO = "frida/frida"
API_URL = f"https://api.github.com/repos/{GITHUB_REPO}/releases/latest"
USER_AGENT_PRODUCT = "FridaLauncher"

SERVER_NAME = "frida-server"
SERVER_ASSET_PREFIX = SERVER_NAME
PLATFORM_TOKEN_TEMPLATE = "android-{tag}"

BINARY_FILENAME = SERVER_NAME
DOWNLOAD_FILENAME = "download.tmp"
STAGING_SUFFIX = ".partial"

HOME_ENV = "FRIDA_LAUNCHER_HOME"
LOCAL_RELEASE_ENV = "FRIDA_LAUNCHER_LOCAL_DIR"
DEFAULT_HOME_DIRNAME = ".frida_launcher"

CHUNK_SIZE = 8 * 1024

# Raw download fills the first 70% of the progress budget, unpacking the rest.
DOWNLOAD_PROGRESS_SHARE = 0.7
# Assumed inflation of an xz payload; true output size is unknown up front.
XZ_INFLATION_RATIO = 3.5

XZ_MAGIC = b"\xfd\x37"
GZIP_MAGIC = b"\x1f\x8b"
ELF_MAGIC = b"\x7fELF"
SNIFF_LENGTH = 4

DEFAULT_PORT = 27042
LISTEN_ADDRESS = "0.0.0.0"
STARTUP_GRACE_SECONDS = 4.0
LOG_LINE_LIMIT = 20
DIAGNOSTIC_LINE_LIMIT = 10
NO_PROCESS_MESSAGE = "No process running"

SU_BINARY = "su"
SHELL_TIMEOUT_SECONDS = 10.0
METADATA_TIMEOUT_SECONDS = 30.0
DOWNLOAD_TIMEOUT_SECONDS = 60.0

BINARY_MODE = "755"
BINARY_OWNER = "root:root"
SUPERUSER_MARKER = "uid=0"

SU_CANDIDATE_PATHS = (
    "/system/app/Superuser.apk",
    "/sbin/su",
    "/system/bin/su",
    "/system/xbin/su",
    "/data/local/xbin/su",
    "/data/local/bin/su",
    "/system/sd/xbin/su",
    "/system/bin/failsafe/su",
    "/data/local/su",
    "/su/bin/su",
)

LISTEN_PROBE_COMMANDS = ("netstat -tln", "ss -ltn")
