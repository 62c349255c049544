from __future__ import annotations

import shutil
import subprocess

import pytest

from services.frida import CommandResult, ElevationError, RootProbe, SuShell

from tests.unit.frida_test_utils import FakeShell


def test_probe_reports_root_when_any_check_passes() -> None:
    shell = FakeShell()
    probe = RootProbe(
        shell,
        checks=(("a", lambda: False), ("b", lambda: True), ("c", lambda: False)),
    )

    assert probe.is_elevation_available()


def test_probe_stops_at_first_passing_check() -> None:
    calls: list[str] = []

    def record(name: str, outcome: bool):  # type: ignore[no-untyped-def]
        def _check() -> bool:
            calls.append(name)
            return outcome

        return _check

    probe = RootProbe(
        FakeShell(),
        checks=(("first", record("first", True)), ("second", record("second", True))),
    )

    assert probe.is_elevation_available()
    assert calls == ["first"]


def test_probe_treats_raising_checks_as_negative() -> None:
    def explode() -> bool:
        raise ElevationError("su: not found")

    probe = RootProbe(FakeShell(), checks=(("boom", explode), ("nope", lambda: False)))

    assert not probe.is_elevation_available()


def test_probe_defaults_run_all_checks_on_unrooted_host() -> None:
    shell = FakeShell(rooted=False)
    probe = RootProbe(shell, candidate_paths=())

    assert not probe.is_elevation_available()
    assert shell.commands[0] == "which su"
    assert shell.commands[-1] == "<script> 'id\\nexit\\n'"


def test_lookup_check_requires_path_output() -> None:
    assert RootProbe(FakeShell(rooted=True)).check_su_on_path()
    assert not RootProbe(FakeShell(rooted=False)).check_su_on_path()


def test_known_paths_check(tmp_path) -> None:  # type: ignore[no-untyped-def]
    present = tmp_path / "su"
    present.write_text("")

    assert RootProbe(FakeShell(), candidate_paths=[str(tmp_path / "missing"), str(present)]).check_known_paths()
    assert not RootProbe(FakeShell(), candidate_paths=[str(tmp_path / "missing")]).check_known_paths()


def test_identity_check_reads_first_line() -> None:
    class Shell(FakeShell):
        def run_script(self, script: str) -> CommandResult:
            return CommandResult(0, "uid=2000(shell) gid=2000(shell)\nuid=0\n")

    assert RootProbe(FakeShell()).check_superuser_identity()
    assert not RootProbe(Shell()).check_superuser_identity()


def test_su_shell_wraps_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(args, **kwargs):  # type: ignore[no-untyped-def]
        raise FileNotFoundError(args[0])

    monkeypatch.setattr("services.frida.elevation.subprocess.run", missing)

    with pytest.raises(ElevationError):
        SuShell("su").run("id")


def test_su_shell_wraps_timeouts(monkeypatch: pytest.MonkeyPatch) -> None:
    def slow(args, **kwargs):  # type: ignore[no-untyped-def]
        raise subprocess.TimeoutExpired(args, kwargs.get("timeout"))

    monkeypatch.setattr("services.frida.elevation.subprocess.run", slow)

    with pytest.raises(ElevationError, match="timed out"):
        SuShell("su", timeout=0.5).run_script("id\n")


def test_su_shell_passes_command_and_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict = {}

    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        captured["args"] = args
        captured.update(kwargs)
        return subprocess.CompletedProcess(args, 0, stdout="ok\n", stderr="")

    monkeypatch.setattr("services.frida.elevation.subprocess.run", fake_run)

    result = SuShell("/sbin/su", timeout=7).run("chmod 755 /data/frida-server")

    assert captured["args"] == ["/sbin/su", "-c", "chmod 755 /data/frida-server"]
    assert captured["timeout"] == 7
    assert result.ok
    assert result.first_line == "ok"


@pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")
def test_su_shell_runs_real_commands_through_sh() -> None:
    shell = SuShell("sh")

    result = shell.run("echo hello; echo oops >&2; exit 3")

    assert result.returncode == 3
    assert result.stdout == "hello\n"
    assert result.stderr.strip() == "oops"


@pytest.mark.skipif(shutil.which("sh") is None, reason="requires a POSIX shell")
def test_su_shell_spawn_merges_streams() -> None:
    process = SuShell("sh").spawn("echo out; echo err >&2")
    try:
        output, _ = process.communicate(timeout=10)
    finally:
        if process.poll() is None:
            process.kill()

    assert sorted(output.split()) == ["err", "out"]
