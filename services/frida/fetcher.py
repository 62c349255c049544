"""Download the frida-server build matching the host platform."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable
from urllib.error import URLError
from urllib.request import Request, urlopen

from services.frida import constants
from services.frida.models import (
    DownloadSession,
    FetchResult,
    NetworkFailure,
    PlatformTag,
    ReleaseAsset,
)
from services.frida.progress import ProgressReporter
from services.frida.providers import ReleaseProvider, select_server_asset


_LOGGER = logging.getLogger(__name__)

FileInfoCallback = Callable[[str], None]


class ArtifactFetcher:
    """Select a release asset for a platform and stream it to disk."""

    def __init__(
        self,
        provider: ReleaseProvider,
        download_path: Path,
        *,
        user_agent: str = constants.USER_AGENT_PRODUCT,
        timeout: float = constants.DOWNLOAD_TIMEOUT_SECONDS,
        chunk_size: int = constants.CHUNK_SIZE,
    ) -> None:
        self._provider = provider
        self._download_path = Path(download_path)
        self._user_agent = user_agent
        self._timeout = timeout
        self._chunk_size = chunk_size

    @property
    def download_path(self) -> Path:
        return self._download_path

    def fetch(
        self,
        tag: PlatformTag,
        *,
        reporter: ProgressReporter | None = None,
        on_file_info: FileInfoCallback | None = None,
    ) -> FetchResult:
        """Download the server asset for ``tag`` into the temporary download path."""

        reporter = reporter or ProgressReporter()
        index = self._provider.fetch_index()
        asset = select_server_asset(index.assets, tag)

        if on_file_info is not None:
            on_file_info(asset.name)

        session = DownloadSession()
        self._stream(asset, session, reporter.stage(0.0, constants.DOWNLOAD_PROGRESS_SHARE))
        _LOGGER.info(
            "Download completed. Temp file size: %s bytes", session.bytes_transferred
        )
        return FetchResult(path=self._download_path, asset_name=asset.name, session=session)

    def _stream(
        self,
        asset: ReleaseAsset,
        session: DownloadSession,
        on_progress: Callable[[float], None],
    ) -> None:
        request = Request(asset.download_url, headers={"User-Agent": self._user_agent})
        self._download_path.parent.mkdir(parents=True, exist_ok=True)
        _LOGGER.info("Downloading %s from %s", asset.name, asset.download_url)
        try:
            with urlopen(request, timeout=self._timeout) as response:  # nosec - HTTPS
                status = getattr(response, "status", None) or 200
                if not 200 <= status < 300:
                    raise NetworkFailure(f"Asset download returned HTTP {status}")
                session.total_bytes = _content_length(response) or (asset.size or 0)
                _LOGGER.debug("Download size: %s bytes", session.total_bytes)
                with self._download_path.open("wb") as destination:
                    for chunk in iter(lambda: response.read(self._chunk_size), b""):
                        destination.write(chunk)
                        session.bytes_transferred += len(chunk)
                        if session.total_bytes > 0:
                            on_progress(session.fraction)
        except NetworkFailure:
            self._discard()
            raise
        except (OSError, URLError) as exc:
            self._discard()
            raise NetworkFailure(f"Failed to download {asset.name}: {exc}") from exc

        if session.bytes_transferred == 0:
            self._discard()
            raise NetworkFailure(f"Downloaded asset {asset.name} was empty")

    def _discard(self) -> None:
        try:
            self._download_path.unlink(missing_ok=True)
        except OSError as exc:
            _LOGGER.debug("Unable to remove partial download %s: %s", self._download_path, exc)


def _content_length(response: object) -> int | None:
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    raw = headers.get("Content-Length")
    try:
        length = int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None
    if length is None or length < 0:
        return None
    return length


__all__ = ["ArtifactFetcher", "FileInfoCallback"]
