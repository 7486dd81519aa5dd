from __future__ import annotations

from pathlib import Path

import pytest

from portguard.process import FakeProcessSupervisor, KillError, ProcessSupervisor, SpawnError
from portguard.process.utils import client_environment


def write_script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def test_spawn_and_terminate_real_process(tmp_path: Path) -> None:
    script = write_script(tmp_path / "client", "exec sleep 30")
    supervisor = ProcessSupervisor(kill_timeout=5)

    handle = supervisor.spawn(script)
    try:
        assert handle.path == script
        assert handle.pid == handle.process.pid
        assert handle.process.poll() is None
    finally:
        supervisor.terminate(handle)

    assert handle.process.poll() is not None


def test_spawn_missing_executable(tmp_path: Path) -> None:
    with pytest.raises(SpawnError) as excinfo:
        ProcessSupervisor().spawn(tmp_path / "missing")

    assert "Failed to start" in str(excinfo.value)
    assert "missing" in str(excinfo.value)


def test_spawn_non_executable_file(tmp_path: Path) -> None:
    script = tmp_path / "client"
    script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    script.chmod(0o644)

    with pytest.raises(SpawnError):
        ProcessSupervisor().spawn(script)


def test_terminate_already_exited_process(tmp_path: Path) -> None:
    script = write_script(tmp_path / "client", "exit 0")
    supervisor = ProcessSupervisor()

    handle = supervisor.spawn(script)
    handle.process.wait(timeout=5)

    supervisor.terminate(handle)


def test_terminate_reports_kill_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    script = write_script(tmp_path / "client", "exec sleep 30")
    supervisor = ProcessSupervisor()
    handle = supervisor.spawn(script)

    def refuse() -> None:
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr(handle.process, "kill", refuse)
    with pytest.raises(KillError) as excinfo:
        supervisor.terminate(handle)
    assert "Operation not permitted" in str(excinfo.value)

    monkeypatch.undo()
    supervisor.terminate(handle)
    assert handle.process.poll() is not None


def test_spawned_process_gets_sanitized_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    output = tmp_path / "env.txt"
    script = write_script(tmp_path / "client", f'echo "${{PYTHONPATH:-unset}}" > "{output}"')
    monkeypatch.setenv("PYTHONPATH", "/leaked")

    handle = ProcessSupervisor().spawn(script)
    handle.process.wait(timeout=5)

    assert output.read_text(encoding="utf-8").strip() == "unset"


def test_fake_supervisor_records_launches() -> None:
    fake = FakeProcessSupervisor(spawn_failures=[Path("/bin/broken")])

    handle = fake.spawn(Path("/bin/a"))
    assert fake.live == [handle]

    with pytest.raises(SpawnError):
        fake.spawn(Path("/bin/broken"))

    fake.fail_next_kill()
    with pytest.raises(KillError):
        fake.terminate(handle)
    assert fake.live == [handle]

    fake.terminate(handle)
    assert fake.live == []


def test_client_environment_drops_interpreter_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIRTUAL_ENV", "/venv")
    monkeypatch.setenv("PORTGUARD_CLIENT_TOKEN", "kept")

    env = client_environment()

    assert "VIRTUAL_ENV" not in env
    assert env["PORTGUARD_CLIENT_TOKEN"] == "kept"
