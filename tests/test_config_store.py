from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from uuid import uuid4

import pytest

from portguard.config import PortguardSettings
from portguard.store import ConfigStore, ConfigStoreError, PersistedState, locate_state_file


def test_locate_uses_executable_base_name(tmp_path: Path) -> None:
    executable = tmp_path / "portguard"
    executable.write_text("", encoding="utf-8")

    assert locate_state_file(str(executable)) == executable.resolve().with_suffix(".json")


def test_locate_replaces_existing_suffix(tmp_path: Path) -> None:
    executable = tmp_path / "portguard.exe"
    executable.write_text("", encoding="utf-8")

    assert locate_state_file(str(executable)).name == "portguard.json"


@pytest.mark.parametrize("executable", ["", "/definitely/not/here/portguard"])
def test_locate_returns_none_when_unresolvable(executable: str) -> None:
    assert locate_state_file(executable) is None


def test_load_missing_file_returns_empty_state(tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "portguard.json")

    state = store.load()

    assert state.clients == {}
    assert state.last_selected is None


@pytest.mark.parametrize(
    "make_state",
    [
        lambda: PersistedState(),
        lambda: PersistedState(clients={uuid4(): Path("/bin/a")}),
        lambda: (lambda cid: PersistedState(clients={cid: Path("/bin/a")}, last_selected=cid))(uuid4()),
        lambda: PersistedState(
            clients={uuid4(): Path("/bin/a"), uuid4(): Path("/opt/clients/b c")},
            last_selected=uuid4(),
        ),
    ],
    ids=["empty", "single", "single-selected", "dangling-selection"],
)
def test_save_then_load_round_trips(tmp_path: Path, make_state) -> None:
    store = ConfigStore(tmp_path / "portguard.json")
    state = make_state()

    assert store.save(state)
    assert store.load() == state


def test_save_writes_readable_json(tmp_path: Path) -> None:
    path = tmp_path / "portguard.json"
    client_id = uuid4()
    ConfigStore(path).save(PersistedState(clients={client_id: Path("/bin/a")}, last_selected=client_id))

    text = path.read_text(encoding="utf-8")
    assert "\n  " in text
    assert json.loads(text) == {
        "clients": {str(client_id): "/bin/a"},
        "last_selected": str(client_id),
    }


def test_load_accepts_missing_last_selected(tmp_path: Path) -> None:
    path = tmp_path / "portguard.json"
    client_id = uuid4()
    path.write_text(json.dumps({"clients": {str(client_id): "/bin/a"}}), encoding="utf-8")

    state = ConfigStore(path).load()

    assert state.clients == {client_id: Path("/bin/a")}
    assert state.last_selected is None


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        '{"clients": ["a", "b"]}',
        '{"clients": {"not-a-uuid": "/bin/a"}}',
    ],
)
def test_load_rejects_corrupt_file(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "portguard.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ConfigStoreError) as excinfo:
        ConfigStore(path).load()

    assert str(path) in str(excinfo.value)


def test_store_without_location_is_best_effort() -> None:
    store = ConfigStore(None)

    assert store.load() == PersistedState()
    assert store.save(PersistedState(clients={uuid4(): Path("/bin/a")})) is False


def test_save_failure_is_logged_not_raised(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    store = ConfigStore(tmp_path / "missing-dir" / "portguard.json")

    with caplog.at_level(logging.WARNING, logger="portguard.store.config_store"):
        assert store.save(PersistedState()) is False

    assert "Failed to write state file" in caplog.text


def test_from_settings_prefers_configured_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORTGUARD_STATE_PATH", str(tmp_path / "custom.json"))

    store = ConfigStore.from_settings(PortguardSettings())

    assert store.path == tmp_path / "custom.json"


def test_load_rejects_non_utf8_file(tmp_path: Path) -> None:
    path = tmp_path / "portguard.json"
    path.write_bytes(b'{"clients": {}, "last_selected": "\xff\xfe"}')

    with pytest.raises(ConfigStoreError) as excinfo:
        ConfigStore(path).load()

    assert str(path) in str(excinfo.value)


def test_save_of_unencodable_path_is_logged_not_raised(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "portguard.json"
    state = PersistedState(clients={uuid4(): Path(os.fsdecode(b"/opt/clients/caf\xe9"))})

    with caplog.at_level(logging.WARNING, logger="portguard.store.config_store"):
        assert ConfigStore(path).save(state) is False

    assert "Failed to write state file" in caplog.text
    assert not path.exists()
