import pytest

from data_store import MemoryStore, PersistenceGateway
from models import Session, Student, default_hotkeys, default_sections
from session_controller import SessionController


class FailingStore(MemoryStore):
    """Store whose reads and writes raise, like a full or read-only disk."""

    def get(self, key):
        raise OSError("store unavailable")

    def set(self, key, value):
        raise OSError("store unavailable")

    def delete(self, key):
        raise OSError("store unavailable")


@pytest.fixture(autouse=True)
def tmp_app_home(tmp_path, monkeypatch):
    """Keep settings and data files inside a temporary directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("ORAL_TEST_MARKER_HOME", str(home))
    return home


@pytest.fixture()
def failing_store():
    return FailingStore()


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture()
def controller(gateway):
    ctrl = SessionController(gateway)
    ctrl.start()
    return ctrl


@pytest.fixture()
def failing_controller(failing_store):
    ctrl = SessionController(PersistenceGateway(failing_store))
    ctrl.start()
    return ctrl


@pytest.fixture()
def sections():
    return default_sections()


@pytest.fixture()
def session(sections):
    return Session(
        title="Oral Test 3B",
        sections=sections,
        hotkeys=default_hotkeys(),
        students=[
            Student(id=10, name="Alice", marks={1: 18, 2: 20, 3: 50}),
            Student(id=11, name="Bob"),
            Student(id=12, name="", marks={1: 5}),
        ],
    )
