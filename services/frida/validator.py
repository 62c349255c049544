"""ELF header validation for the installed server binary."""

from __future__ import annotations

import logging
from pathlib import Path

from services.frida import constants


_LOGGER = logging.getLogger(__name__)


def read_header(path: Path, length: int = constants.SNIFF_LENGTH) -> bytes:
    with Path(path).open("rb") as source:
        return source.read(length)


def is_valid_binary(path: Path) -> bool:
    """Return ``True`` when ``path`` starts with the ELF magic number.

    A file that cannot be opened is reported as invalid.
    """

    try:
        header = read_header(path)
    except OSError as exc:
        _LOGGER.error("Failed to validate binary %s: %s", path, exc)
        return False

    valid = header == constants.ELF_MAGIC
    _LOGGER.debug("Binary validation - ELF header: %s", valid)
    _LOGGER.debug("Header bytes: %s", format_header(header))
    return valid


def format_header(header: bytes) -> str:
    return " ".join(f"{byte:02X}" for byte in header)


__all__ = ["format_header", "is_valid_binary", "read_header"]
