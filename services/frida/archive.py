"""Unpack a downloaded payload into the canonical server binary path."""

from __future__ import annotations

import gzip
import logging
import lzma
import os
import shutil
import zlib
from pathlib import Path
from typing import Callable

from services.frida import constants
from services.frida.models import ArchiveError, ArchiveFormat, DownloadSession, UnknownFormat
from services.frida.progress import ProgressReporter
from services.frida.validator import format_header, read_header


_LOGGER = logging.getLogger(__name__)


def detect_format(header: bytes) -> ArchiveFormat:
    """Classify ``header`` by its leading magic bytes."""

    if header.startswith(constants.XZ_MAGIC):
        return ArchiveFormat.XZ
    if header.startswith(constants.GZIP_MAGIC):
        return ArchiveFormat.GZIP
    if header.startswith(constants.ELF_MAGIC[:2]):
        return ArchiveFormat.ELF
    return ArchiveFormat.UNKNOWN


def normalize_download(
    download_path: Path,
    binary_path: Path,
    *,
    reporter: ProgressReporter | None = None,
    session: DownloadSession | None = None,
) -> Path:
    """Turn ``download_path`` into an executable image at ``binary_path``.

    The download is always removed afterwards. ``binary_path`` is only
    replaced once unpacking has fully succeeded.
    """

    reporter = reporter or ProgressReporter()
    stage = reporter.stage(
        constants.DOWNLOAD_PROGRESS_SHARE, 1.0 - constants.DOWNLOAD_PROGRESS_SHARE
    )
    download_path = Path(download_path)
    binary_path = Path(binary_path)
    staging_path = binary_path.with_name(binary_path.name + constants.STAGING_SUFFIX)

    try:
        try:
            header = read_header(download_path)
        except OSError as exc:
            raise ArchiveError(f"Failed to read downloaded file: {exc}") from exc
        _LOGGER.debug("File header: %s", format_header(header))

        archive_format = detect_format(header)
        if session is not None:
            session.detected_format = archive_format

        if archive_format is ArchiveFormat.XZ:
            _LOGGER.info("Detected XZ compressed file")
            _decompress_xz(download_path, staging_path, stage)
        elif archive_format is ArchiveFormat.GZIP:
            _LOGGER.info("Detected GZIP compressed file")
            _decompress_gzip(download_path, staging_path)
        elif archive_format is ArchiveFormat.ELF:
            _LOGGER.info("Detected raw ELF file")
            os.replace(download_path, staging_path)
        else:
            raise UnknownFormat(f"Unknown file format (header {format_header(header)})")

        _install_staged(staging_path, binary_path)
        stage(1.0)
    finally:
        _remove_quietly(download_path)
        _remove_quietly(staging_path)

    _LOGGER.info("Final binary size: %s bytes", binary_path.stat().st_size)
    return binary_path


def _decompress_xz(source: Path, target: Path, on_progress: Callable[[float], None]) -> None:
    input_size = source.stat().st_size
    expected_output = input_size * constants.XZ_INFLATION_RATIO
    total_read = 0
    try:
        with lzma.open(source, "rb") as stream, target.open("wb") as output:
            for chunk in iter(lambda: stream.read(constants.CHUNK_SIZE), b""):
                output.write(chunk)
                total_read += len(chunk)
                if expected_output > 0:
                    on_progress(total_read / expected_output)
    except (lzma.LZMAError, EOFError, OSError) as exc:
        raise ArchiveError(f"XZ decompression failed: {exc}") from exc
    _LOGGER.debug("Input size: %s, Output size: %s", input_size, total_read)
    if total_read == 0:
        raise ArchiveError("XZ stream decompressed to an empty file")


def _decompress_gzip(source: Path, target: Path) -> None:
    try:
        with gzip.open(source, "rb") as stream, target.open("wb") as output:
            shutil.copyfileobj(stream, output, constants.CHUNK_SIZE)
    except (gzip.BadGzipFile, zlib.error, EOFError, OSError) as exc:
        raise ArchiveError(f"GZIP decompression failed: {exc}") from exc
    if target.stat().st_size == 0:
        raise ArchiveError("GZIP stream decompressed to an empty file")


def _install_staged(staging_path: Path, binary_path: Path) -> None:
    if binary_path.exists():
        binary_path.unlink()
        _LOGGER.debug("Deleted existing binary")
    os.replace(staging_path, binary_path)


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        _LOGGER.debug("Unable to remove %s: %s", path, exc)


__all__ = ["detect_format", "normalize_download"]
