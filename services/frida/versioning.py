"""Helpers for reading and comparing frida-server versions."""

from __future__ import annotations

import re

from packaging.version import InvalidVersion, Version


__all__ = [
    "compare_versions",
    "extract_asset_version",
    "is_version_newer",
    "parse_version_output",
]

_ASSET_VERSION_PATTERN = re.compile(r"^frida-server-(?P<version>\d+(?:\.\d+)*)-")
_VERSION_TOKEN_PATTERN = re.compile(r"\d+(?:\.\d+)+")


def extract_asset_version(asset_name: str) -> str | None:
    """Return the version embedded in a ``frida-server-<version>-...`` name."""

    match = _ASSET_VERSION_PATTERN.match(asset_name.strip())
    if match is None:
        return None
    return match.group("version")


def parse_version_output(output: str) -> str | None:
    """Return the first dotted version number printed by ``--version``."""

    match = _VERSION_TOKEN_PATTERN.search(output or "")
    if match is None:
        return None
    return match.group(0)


def compare_versions(current_version: str, candidate: str) -> int:
    """Compare ``candidate`` against ``current_version``.

    Returns ``1`` when ``candidate`` is newer, ``-1`` when it is older and ``0``
    when both are equivalent or either cannot be parsed.
    """

    if candidate == current_version:
        return 0
    try:
        candidate_version = Version(candidate)
        current_version_parsed = Version(current_version)
    except InvalidVersion:
        return 0

    if candidate_version == current_version_parsed:
        return 0
    if candidate_version > current_version_parsed:
        return 1
    return -1


def is_version_newer(current_version: str, candidate: str) -> bool:
    """Return ``True`` if ``candidate`` is newer than ``current_version``."""

    return compare_versions(current_version, candidate) > 0
