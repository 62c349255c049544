from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from services.frida import (
    AssetNotFound,
    GitHubReleaseProvider,
    LocalFolderReleaseProvider,
    NetworkFailure,
    PlatformTag,
    ReleaseAsset,
    select_server_asset,
)
from services.frida.providers import build_user_agent, platform_token
from tests.unit.frida_test_utils import API_URL, FakeHttp, release_manifest


def _assets(*names: str) -> list[ReleaseAsset]:
    return [ReleaseAsset(name, f"https://downloads.invalid/{name}") for name in names]


def test_selects_first_matching_server_asset() -> None:
    assets = _assets(
        "frida-gadget-16.0.2-android-arm64.so.xz",
        "frida-server-16.0.2-android-arm.xz",
        "frida-server-16.0.2-android-arm64.xz",
        "frida-server-16.0.2-android-arm64-extra.xz",
    )

    selected = select_server_asset(assets, PlatformTag.ARM64)

    assert selected.name == "frida-server-16.0.2-android-arm64.xz"


def test_arm_token_matches_by_substring() -> None:
    # "android-arm" is also a substring of "android-arm64"; listing order decides.
    assets = _assets(
        "frida-server-16.0.2-android-arm64.xz",
        "frida-server-16.0.2-android-arm.xz",
    )

    assert select_server_asset(assets, PlatformTag.ARM).name.endswith("android-arm64.xz")


def test_missing_platform_raises_asset_not_found() -> None:
    assets = _assets("frida-server-16.0.2-android-arm64.xz")

    with pytest.raises(AssetNotFound, match="android-x86"):
        select_server_asset(assets, PlatformTag.X86)


def test_platform_token_and_user_agent() -> None:
    assert platform_token(PlatformTag.X86_64) == "android-x86_64"
    assert build_user_agent("1.2.3") == "FridaLauncher/1.2.3"
    assert build_user_agent(None) == "FridaLauncher"


def test_github_provider_parses_release(monkeypatch: pytest.MonkeyPatch) -> None:
    http = FakeHttp().install(monkeypatch)
    manifest = release_manifest(
        ("frida-server-16.0.2-android-arm64.xz", "https://downloads.invalid/a.xz"),
        ("frida-server-16.0.2-android-x86.xz", "https://downloads.invalid/b.xz"),
    )
    manifest["assets"].append({"name": "broken"})
    manifest["assets"][0]["size"] = 1234
    http.add_json(API_URL, manifest)

    index = GitHubReleaseProvider(API_URL, user_agent="FridaLauncher/9.9", timeout=12).fetch_index()

    assert index.version == "16.0.2"
    assert [asset.name for asset in index.assets] == [
        "frida-server-16.0.2-android-arm64.xz",
        "frida-server-16.0.2-android-x86.xz",
    ]
    assert index.assets[0].size == 1234
    assert index.assets[1].size is None
    assert http.requests == [(API_URL, "FridaLauncher/9.9", 12)]


def test_github_provider_wraps_transport_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    FakeHttp().install(monkeypatch)

    with pytest.raises(NetworkFailure):
        GitHubReleaseProvider(API_URL).fetch_index()


def test_github_provider_rejects_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    http = FakeHttp().install(monkeypatch)
    http.add_json(API_URL, {"message": "rate limited"})
    http.statuses[API_URL] = 403

    with pytest.raises(NetworkFailure, match="403"):
        GitHubReleaseProvider(API_URL).fetch_index()


def test_github_provider_rejects_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    http = FakeHttp().install(monkeypatch)
    http.responses[API_URL] = b"<html>not json</html>"

    with pytest.raises(NetworkFailure, match="valid JSON"):
        GitHubReleaseProvider(API_URL).fetch_index()


def _write_local_release(folder: Path, *names: str, listed: tuple[str, ...] | None = None) -> None:
    folder.mkdir(parents=True, exist_ok=True)
    for name in names:
        (folder / name).write_bytes(b"payload")
    entries = [{"name": name} for name in (listed if listed is not None else names)]
    (folder / "release.json").write_text(
        json.dumps({"version": "16.1.0", "assets": entries}), encoding="utf-8"
    )


def test_local_provider_lists_existing_files(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="services.frida.providers")
    folder = tmp_path / "release"
    _write_local_release(
        folder,
        "frida-server-16.1.0-android-arm64.xz",
        listed=("frida-server-16.1.0-android-arm64.xz", "frida-server-16.1.0-android-x86.xz"),
    )

    index = LocalFolderReleaseProvider(folder).fetch_index()

    assert index.version == "16.1.0"
    assert len(index.assets) == 1
    asset = index.assets[0]
    assert asset.download_url.startswith("file://")
    assert asset.size == len(b"payload")
    assert any("Local asset missing" in record.getMessage() for record in caplog.records)


def test_local_provider_without_metadata_fails(tmp_path: Path) -> None:
    with pytest.raises(NetworkFailure):
        LocalFolderReleaseProvider(tmp_path).fetch_index()
