"""Release index provider implementations."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Protocol
from urllib.error import URLError
from urllib.request import Request, urlopen

from services.frida import constants
from services.frida.models import (
    AssetNotFound,
    NetworkFailure,
    PlatformTag,
    ReleaseAsset,
    ReleaseIndex,
)


_LOGGER = logging.getLogger(__name__)


class ReleaseProvider(Protocol):
    """Protocol describing release index sources."""

    def fetch_index(self) -> ReleaseIndex:
        """Return the latest release and its assets."""


def build_user_agent(version: str | None = None) -> str:
    if version:
        return f"{constants.USER_AGENT_PRODUCT}/{version}"
    return constants.USER_AGENT_PRODUCT


class GitHubReleaseProvider:
    """Fetch release metadata from the GitHub Releases API."""

    def __init__(
        self,
        api_url: str = constants.API_URL,
        *,
        user_agent: str = constants.USER_AGENT_PRODUCT,
        timeout: float = constants.METADATA_TIMEOUT_SECONDS,
    ) -> None:
        self._api_url = api_url
        self._user_agent = user_agent
        self._timeout = timeout

    def fetch_index(self) -> ReleaseIndex:
        payload = self._request_json(self._api_url)
        if not isinstance(payload, dict):
            raise NetworkFailure("Release index response was not a JSON object")
        version = str(payload.get("tag_name") or payload.get("name") or "").strip() or None
        assets = tuple(_parse_assets(payload.get("assets")))
        _LOGGER.info("Release %s lists %s assets", version or "<unknown>", len(assets))
        return ReleaseIndex(version=version, assets=assets)

    def _request_json(self, url: str) -> object:
        request = Request(
            url,
            headers={"User-Agent": self._user_agent, "Accept": "application/vnd.github+json"},
        )
        _LOGGER.debug("Querying release index %s", url)
        try:
            with urlopen(request, timeout=self._timeout) as response:  # nosec - HTTPS
                status = getattr(response, "status", 200)
                if not 200 <= status < 300:
                    raise NetworkFailure(f"Release index returned HTTP {status}")
                return json.load(response)
        except (OSError, URLError) as exc:
            raise NetworkFailure(f"Failed to query release index: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise NetworkFailure(f"Release index was not valid JSON: {exc}") from exc


class LocalFolderReleaseProvider:
    """Serve release metadata from a local directory.

    The folder holds a ``release.json`` document shaped like::

        {"version": "16.0.2", "assets": [{"name": "frida-server-16.0.2-android-arm64.xz"}]}

    and the asset files themselves. Download URLs are ``file://`` URIs so the
    regular streaming path can read them.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = Path(folder)

    def fetch_index(self) -> ReleaseIndex:
        metadata_path = self._folder / "release.json"
        try:
            data = json.loads(metadata_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise NetworkFailure(f"Failed to read local release metadata: {exc}") from exc
        if not isinstance(data, dict):
            raise NetworkFailure("Local release metadata was not a JSON object")

        assets: list[ReleaseAsset] = []
        for entry in data.get("assets") or []:
            if not isinstance(entry, dict):
                continue
            name = str(entry.get("name") or "").strip()
            if not name:
                continue
            asset_path = self._folder / name
            if not asset_path.is_file():
                _LOGGER.debug("Local asset missing: %s", asset_path)
                continue
            assets.append(
                ReleaseAsset(
                    name=name,
                    download_url=asset_path.resolve().as_uri(),
                    size=asset_path.stat().st_size,
                )
            )

        version = str(data.get("version") or "").strip() or None
        _LOGGER.info("Local release %s supplies %s assets", version or "<unknown>", len(assets))
        return ReleaseIndex(version=version, assets=tuple(assets))


def platform_token(tag: PlatformTag) -> str:
    return constants.PLATFORM_TOKEN_TEMPLATE.format(tag=tag.value)


def select_server_asset(assets: Iterable[ReleaseAsset], tag: PlatformTag) -> ReleaseAsset:
    """Return the first server asset built for ``tag``.

    Raises :class:`AssetNotFound` when nothing matches.
    """

    token = platform_token(tag)
    _LOGGER.debug("Searching for %s-*-%s asset...", constants.SERVER_ASSET_PREFIX, token)
    for asset in assets:
        if asset.name.startswith(constants.SERVER_ASSET_PREFIX) and token in asset.name:
            _LOGGER.info("Selected asset: %s (version %s)", asset.name, asset.version or "unknown")
            _LOGGER.debug("Download URL: %s", asset.download_url)
            return asset
    raise AssetNotFound(f"No matching {constants.SERVER_ASSET_PREFIX} found for {token}")


def _parse_assets(raw: object) -> Iterable[ReleaseAsset]:
    if not isinstance(raw, list):
        return
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        url = entry.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str):
            continue
        name = name.strip()
        url = url.strip()
        if not name or not url:
            continue
        size = entry.get("size")
        yield ReleaseAsset(
            name=name,
            download_url=url,
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
        )


__all__ = [
    "GitHubReleaseProvider",
    "LocalFolderReleaseProvider",
    "ReleaseProvider",
    "build_user_agent",
    "platform_token",
    "select_server_asset",
]
