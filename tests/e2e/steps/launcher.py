from __future__ import annotations

from pytest_bdd import given, parsers, then, when

from services.frida import SupervisorState, is_valid_binary

from tests.e2e.harness import LauncherHarness
from tests.unit.frida_test_utils import install_binary


def _split(values: str) -> list[str]:
    return [value.strip() for value in values.split(",") if value.strip()]


@given(parsers.parse('the device reports ABIs "{abis}"'))
def device_abis(launcher: LauncherHarness, abis: str) -> None:
    launcher.abis = tuple(_split(abis))


@given(parsers.parse('the release lists assets "{names}"'))
def release_assets(launcher: LauncherHarness, names: str) -> None:
    launcher.publish_release(*_split(names))


@given("the device is not rooted")
def device_not_rooted(launcher: LauncherHarness) -> None:
    launcher.shell.rooted = False


@given(parsers.parse('the device is rooted and the server listens on ports "{ports}"'))
def device_rooted(launcher: LauncherHarness, ports: str) -> None:
    launcher.shell.rooted = True
    launcher.shell.listening_ports = {int(port) for port in _split(ports)}


@given("a valid server binary is installed")
def binary_installed(launcher: LauncherHarness) -> None:
    install_binary(launcher.home)


@when("the latest server is downloaded")
def download_latest(launcher: LauncherHarness) -> None:
    launcher.download()


@when(parsers.parse("the server is started on port {port:d}"))
def start_server(launcher: LauncherHarness, port: int) -> None:
    launcher.start(port)


@when("the server is stopped twice")
def stop_twice(launcher: LauncherHarness) -> None:
    launcher.manager.stop()
    launcher.manager.stop()


@then("the operation succeeds")
def operation_succeeds(launcher: LauncherHarness) -> None:
    assert launcher.results == [True]


@then("the operation fails")
def operation_fails(launcher: LauncherHarness) -> None:
    assert launcher.results == [False]


@then(parsers.parse('the file "{name}" is reported before any progress'))
def file_reported_first(launcher: LauncherHarness, name: str) -> None:
    assert launcher.file_names == [name]
    assert launcher.events[0] == ("file", name)


@then("progress never decreases and ends at 1.0")
def progress_monotonic(launcher: LauncherHarness) -> None:
    progress = launcher.progress
    assert progress
    assert all(earlier <= later for earlier, later in zip(progress, progress[1:]))
    assert progress[-1] == 1.0


@then("the installed server binary is a valid executable")
def binary_valid(launcher: LauncherHarness) -> None:
    assert is_valid_binary(launcher.manager.binary_path)


@then("no file name is reported")
def no_file_name(launcher: LauncherHarness) -> None:
    assert launcher.file_names == []


@then("no temporary download remains")
def no_temp_file(launcher: LauncherHarness) -> None:
    assert not launcher.manager.download_path.exists()


@then("no process was launched")
def nothing_spawned(launcher: LauncherHarness) -> None:
    assert launcher.shell.spawned == []


@then("no permissions were changed")
def no_permission_changes(launcher: LauncherHarness) -> None:
    assert launcher.shell.permission_commands() == []


@then("the first process was stopped before the second was launched")
def first_stopped(launcher: LauncherHarness) -> None:
    first, second = launcher.shell.spawned
    events = launcher.shell.events
    assert first.terminated
    assert events.index(f"terminate:{first.pid}") < events.index(f"spawn:{second.pid}")


@then(parsers.parse("exactly one process is tracked on port {port:d}"))
def one_process_tracked(launcher: LauncherHarness, port: int) -> None:
    process = launcher.manager.supervisor.process
    assert process is not None
    assert process.pid == launcher.shell.spawned[-1].pid
    assert process.port == port
    assert launcher.manager.supervisor.state is SupervisorState.RUNNING


@then("the supervisor is idle")
def supervisor_idle(launcher: LauncherHarness) -> None:
    assert launcher.manager.supervisor.state is SupervisorState.IDLE
    assert launcher.manager.supervisor.process is None


@then(parsers.parse('the log output is "{expected}"'))
def log_output(launcher: LauncherHarness, expected: str) -> None:
    assert launcher.manager.get_log_output() == expected
