"""Data persistence: key-value stores, session records, app settings."""
import json
import logging
import os
from typing import Dict, List, Optional

from models import AppSettings, HotkeyBinding, Section, Session, Student, app_home

logger = logging.getLogger(__name__)

# ── Record keys ───────────────────────────────────────────────────────────────

CONFIG_KEY = "config"
STUDENTS_KEY = "students"
MODE_KEY = "mode"
MARKING_MODE = "marking"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ── Logging ───────────────────────────────────────────────────────────────────

def set_debug(enabled: bool) -> None:
    """Configure root logging; DEBUG level when *enabled*, INFO otherwise."""
    level = logging.DEBUG if enabled else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_LOG_FORMAT)
    root.setLevel(level)


def dbg(msg: str) -> None:
    logger.debug(msg)


# ── Key-value stores ──────────────────────────────────────────────────────────

class MemoryStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, records: Optional[Dict[str, str]] = None):
        self.records: Dict[str, str] = dict(records or {})

    def get(self, key: str) -> Optional[str]:
        return self.records.get(key)

    def set(self, key: str, value: str) -> None:
        self.records[key] = value

    def delete(self, key: str) -> None:
        self.records.pop(key, None)


class FileStore:
    """One UTF-8 file per key (``<data_dir>/<key>.json``)."""

    def __init__(self, data_dir: str):
        self.data_dir = os.path.abspath(data_dir)

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        os.makedirs(self.data_dir, exist_ok=True)
        with open(self._path(key), "w", encoding="utf-8") as f:
            f.write(value)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


# ── Record (de)serialization ──────────────────────────────────────────────────

def session_config_to_dict(session: Session) -> dict:
    """Everything except the students: title, sections, hotkeys."""
    return {
        "title": session.title,
        "sections": [
            {"id": sec.id, "name": sec.name, "max_marks": sec.max_marks}
            for sec in session.sections
        ],
        "hotkeys": [
            {"key": hk.key, "deduction": hk.deduction, "label": hk.label}
            for hk in session.hotkeys
        ],
    }


def students_to_list(students: List[Student]) -> List[dict]:
    # JSON object keys are strings; section ids are restored on load.
    return [
        {
            "id": st.id,
            "name": st.name,
            "marks": {str(sec_id): mark for sec_id, mark in st.marks.items()},
        }
        for st in students
    ]


def session_from_records(config_data: dict, students_data: Optional[list]) -> Session:
    """Build a Session from parsed ``config`` and ``students`` records."""
    sections = [
        Section(
            id=int(sec["id"]),
            name=str(sec.get("name", "")),
            max_marks=int(sec.get("max_marks", 0)),
        )
        for sec in config_data.get("sections", [])
    ]
    hotkeys = [
        HotkeyBinding(
            key=str(hk.get("key", "")),
            deduction=int(hk.get("deduction", 0)),
            label=str(hk.get("label", "")),
        )
        for hk in config_data.get("hotkeys", [])
    ]
    students = [
        Student(
            id=int(st["id"]),
            name=str(st.get("name", "")),
            marks={int(k): int(v) for k, v in st.get("marks", {}).items()},
        )
        for st in (students_data or [])
    ]
    return Session(
        title=str(config_data.get("title", "")),
        sections=sections,
        hotkeys=hotkeys,
        students=students,
    )


# ── Gateway ───────────────────────────────────────────────────────────────────

class PersistenceGateway:
    """Load/save a Session and the marking-mode flag against a key-value store.

    Store failures never propagate: reads fall back to "absent" and writes
    report False.  The in-memory Session is always the authority; a failed
    write only costs durability across restarts.
    """

    def __init__(self, store):
        self.store = store

    def load(self) -> Optional[Session]:
        try:
            raw_config = self.store.get(CONFIG_KEY)
            if raw_config is None:
                return None
            raw_students = self.store.get(STUDENTS_KEY)
            config_data = json.loads(raw_config)
            students_data = json.loads(raw_students) if raw_students else []
            session = session_from_records(config_data, students_data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Could not load saved session, using defaults: %s", exc)
            return None
        dbg(f"Loaded session: {len(session.sections)} section(s), "
            f"{len(session.students)} student(s)")
        return session

    def save(self, session: Session) -> bool:
        try:
            config_text = json.dumps(session_config_to_dict(session), indent=2)
            students_text = json.dumps(students_to_list(session.students), indent=2)
            self.store.set(CONFIG_KEY, config_text)
            self.store.set(STUDENTS_KEY, students_text)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not save session: %s", exc)
            return False
        return True

    def get_mode(self) -> bool:
        try:
            return self.store.get(MODE_KEY) == MARKING_MODE
        except (OSError, ValueError) as exc:
            logger.warning("Could not read marking mode: %s", exc)
            return False

    def set_mode(self, marking: bool) -> bool:
        try:
            if marking:
                self.store.set(MODE_KEY, MARKING_MODE)
            else:
                self.store.delete(MODE_KEY)
        except (OSError, ValueError) as exc:
            logger.warning("Could not write marking mode: %s", exc)
            return False
        return True

    def clear_students(self) -> bool:
        try:
            self.store.delete(STUDENTS_KEY)
        except (OSError, ValueError) as exc:
            logger.warning("Could not clear saved students: %s", exc)
            return False
        return True


# ── App settings (settings.json in the app home) ─────────────────────────────

def settings_path() -> str:
    return os.path.join(app_home(), "settings.json")


def load_app_settings(path: Optional[str] = None) -> AppSettings:
    """Read settings.json; a missing or malformed file yields defaults."""
    path = path or settings_path()
    defaults = AppSettings()
    if not os.path.exists(path):
        return defaults
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return AppSettings(
            data_dir=str(data.get("data_dir") or defaults.data_dir),
            export_dir=str(data.get("export_dir") or defaults.export_dir),
            debug_mode=bool(data.get("debug_mode", False)),
        )
    except (OSError, ValueError, AttributeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return defaults


def save_app_settings(settings: AppSettings, path: Optional[str] = None) -> None:
    path = path or settings_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "data_dir": settings.data_dir,
                "export_dir": settings.export_dir,
                "debug_mode": settings.debug_mode,
            },
            f,
            indent=2,
        )
        f.write("\n")
