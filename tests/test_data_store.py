import json
import logging

import data_store
from data_store import FileStore, MemoryStore, PersistenceGateway
from models import AppSettings, Session


def test_load_empty_store_is_absent(gateway):
    assert gateway.load() is None
    assert gateway.get_mode() is False


def test_save_then_load_round_trip(gateway, session):
    assert gateway.save(session)
    loaded = gateway.load()
    assert loaded == session
    # section ids come back as ints even though JSON keys are strings
    assert loaded.students[0].marks == {1: 18, 2: 20, 3: 50}


def test_round_trip_through_files(tmp_path, session):
    gw = PersistenceGateway(FileStore(str(tmp_path / "data")))
    assert gw.save(session)
    assert gw.set_mode(True)

    fresh = PersistenceGateway(FileStore(str(tmp_path / "data")))
    assert fresh.load() == session
    assert fresh.get_mode() is True


def test_records_layout(store, gateway, session):
    gateway.save(session)
    config = json.loads(store.get("config"))
    assert "students" not in config
    assert config["title"] == "Oral Test 3B"
    assert config["sections"][0] == {"id": 1, "name": "Reading", "max_marks": 20}
    assert config["hotkeys"][0] == {"key": "q", "deduction": 2, "label": "Minor Error"}
    students = json.loads(store.get("students"))
    assert students[0] == {"id": 10, "name": "Alice",
                           "marks": {"1": 18, "2": 20, "3": 50}}


def test_mode_flag(store, gateway):
    gateway.set_mode(True)
    assert store.get("mode") == "marking"
    assert gateway.get_mode()
    gateway.set_mode(False)
    assert store.get("mode") is None
    assert not gateway.get_mode()


def test_missing_students_record_loads_empty_list(store, gateway, session):
    gateway.save(session)
    gateway.clear_students()
    loaded = gateway.load()
    assert loaded.students == []
    assert loaded.sections == session.sections


def test_malformed_record_falls_back_to_absent(store, gateway, caplog):
    store.set("config", "{not json")
    with caplog.at_level(logging.WARNING):
        assert gateway.load() is None
    assert "Could not load saved session" in caplog.text


def test_failing_store_reports_failure_without_raising(failing_store, session,
                                                       caplog):
    gw = PersistenceGateway(failing_store)
    with caplog.at_level(logging.WARNING):
        assert gw.save(session) is False
        assert gw.load() is None
        assert gw.get_mode() is False
        assert gw.set_mode(True) is False
        assert gw.clear_students() is False
    assert "Could not save session" in caplog.text


def test_save_does_not_touch_session(gateway, session):
    before = Session(
        title=session.title,
        sections=list(session.sections),
        hotkeys=list(session.hotkeys),
        students=list(session.students),
    )
    gateway.save(session)
    assert session == before


def test_file_store_delete_missing_key_is_noop(tmp_path):
    fs = FileStore(str(tmp_path / "nowhere"))
    fs.delete("students")
    assert fs.get("students") is None


def test_memory_store_copies_initial_records():
    records = {"mode": "marking"}
    ms = MemoryStore(records)
    ms.delete("mode")
    assert records == {"mode": "marking"}


# ── app settings ─────────────────────────────────────────────────────────────

def test_app_settings_default_under_app_home(tmp_app_home):
    settings = data_store.load_app_settings()
    assert settings.data_dir == str(tmp_app_home / "data")
    assert settings.export_dir == str(tmp_app_home / "export")
    assert settings.debug_mode is False


def test_app_settings_round_trip(tmp_path):
    path = str(tmp_path / "settings.json")
    data_store.save_app_settings(
        AppSettings(data_dir="/d", export_dir="/e", debug_mode=True), path)
    loaded = data_store.load_app_settings(path)
    assert loaded == AppSettings(data_dir="/d", export_dir="/e", debug_mode=True)


def test_unreadable_app_settings_fall_back_to_defaults(tmp_path, tmp_app_home):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2")
    assert data_store.load_app_settings(str(path)) == AppSettings()


def test_set_debug_switches_root_level():
    root = logging.getLogger()
    previous = root.level
    try:
        data_store.set_debug(True)
        assert root.level == logging.DEBUG
        data_store.set_debug(False)
        assert root.level == logging.INFO
    finally:
        root.setLevel(previous)


def test_undecodable_mode_record_reads_as_not_marking(tmp_path, caplog):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "mode.json").write_bytes(b"\xff\xfe")
    gw = PersistenceGateway(FileStore(str(data_dir)))
    with caplog.at_level(logging.WARNING):
        assert gw.get_mode() is False
    assert "Could not read marking mode" in caplog.text
