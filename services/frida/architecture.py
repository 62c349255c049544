"""Map host ABI identifiers onto frida-server platform tags."""

from __future__ import annotations

import logging
import platform
import subprocess
from typing import Sequence

from services.frida.models import PlatformTag


_LOGGER = logging.getLogger(__name__)

DEFAULT_PLATFORM = PlatformTag.ARM64

_ABI_TABLE: dict[str, PlatformTag] = {
    "arm64-v8a": PlatformTag.ARM64,
    "arm64": PlatformTag.ARM64,
    "aarch64": PlatformTag.ARM64,
    "armeabi-v7a": PlatformTag.ARM,
    "armeabi": PlatformTag.ARM,
    "armv7l": PlatformTag.ARM,
    "armv8l": PlatformTag.ARM,
    "arm": PlatformTag.ARM,
    "x86_64": PlatformTag.X86_64,
    "amd64": PlatformTag.X86_64,
    "x86": PlatformTag.X86,
    "i686": PlatformTag.X86,
    "i386": PlatformTag.X86,
}

_ABI_LIST_PROPERTY = "ro.product.cpu.abilist"


def identify_platform(abis: Sequence[str]) -> PlatformTag:
    """Return the platform tag for the primary ABI in ``abis``.

    Unknown or missing ABIs fall back to :data:`DEFAULT_PLATFORM` with a
    warning instead of failing.
    """

    primary = abis[0].strip() if abis else ""
    _LOGGER.debug("Primary ABI: %s", primary or "<none>")
    _LOGGER.debug("All ABIs: %s", ", ".join(abis))

    tag = _ABI_TABLE.get(primary.lower())
    if tag is None:
        _LOGGER.warning(
            "Unknown ABI: %s, defaulting to %s", primary or "<none>", DEFAULT_PLATFORM.value
        )
        return DEFAULT_PLATFORM
    return tag


def host_abis() -> list[str]:
    """Return the ABIs reported by the host, primary first."""

    abis = _android_abis()
    if abis:
        return abis
    machine = platform.machine()
    return [machine] if machine else []


def _android_abis() -> list[str]:
    try:
        output = subprocess.run(
            ["getprop", _ABI_LIST_PROPERTY],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        ).stdout
    except (OSError, subprocess.SubprocessError) as exc:
        _LOGGER.debug("getprop unavailable: %s", exc)
        return []
    return [token.strip() for token in output.split(",") if token.strip()]


__all__ = ["DEFAULT_PLATFORM", "host_abis", "identify_platform"]
