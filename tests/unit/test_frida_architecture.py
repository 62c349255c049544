from __future__ import annotations

import logging
import subprocess

import pytest

from services.frida import DEFAULT_PLATFORM, PlatformTag, host_abis, identify_platform


@pytest.mark.parametrize(
    ("abi", "expected"),
    [
        ("arm64-v8a", PlatformTag.ARM64),
        ("armeabi-v7a", PlatformTag.ARM),
        ("armeabi", PlatformTag.ARM),
        ("x86_64", PlatformTag.X86_64),
        ("x86", PlatformTag.X86),
        ("aarch64", PlatformTag.ARM64),
        ("armv7l", PlatformTag.ARM),
        ("i686", PlatformTag.X86),
        ("AMD64", PlatformTag.X86_64),
    ],
)
def test_identify_platform_maps_known_abis(abi: str, expected: PlatformTag) -> None:
    assert identify_platform([abi]) is expected


def test_identify_platform_uses_primary_abi_only() -> None:
    assert identify_platform(["x86", "arm64-v8a"]) is PlatformTag.X86


def test_unknown_abi_defaults_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="services.frida.architecture")

    tag = identify_platform(["mips64"])

    assert tag is DEFAULT_PLATFORM is PlatformTag.ARM64
    assert any("Unknown ABI: mips64" in record.getMessage() for record in caplog.records)


def test_empty_abi_list_defaults_without_failing(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="services.frida.architecture")

    assert identify_platform([]) is PlatformTag.ARM64
    assert caplog.records


def test_platform_tag_values_match_asset_naming() -> None:
    assert [tag.value for tag in PlatformTag] == ["arm64", "arm", "x86_64", "x86"]


def test_host_abis_reads_android_property(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        assert args == ["getprop", "ro.product.cpu.abilist"]
        return subprocess.CompletedProcess(args, 0, stdout="arm64-v8a,armeabi-v7a,armeabi\n")

    monkeypatch.setattr("services.frida.architecture.subprocess.run", fake_run)

    assert host_abis() == ["arm64-v8a", "armeabi-v7a", "armeabi"]


def test_host_abis_falls_back_to_machine(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing_getprop(args, **kwargs):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("getprop")

    monkeypatch.setattr("services.frida.architecture.subprocess.run", missing_getprop)
    monkeypatch.setattr("services.frida.architecture.platform.machine", lambda: "aarch64")

    abis = host_abis()

    assert abis == ["aarch64"]
    assert identify_platform(abis) is PlatformTag.ARM64
