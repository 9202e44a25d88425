"""Pytest fixtures for experiment session tests."""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, List, Sequence

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import FileSaverConfig, SessionConfig
from data.abstractions import DataType
from data.handlers import DataHandler, FileSaver
from experiment.session import Session
from experiment.tracker import Tracker


class RecordingHandler(DataHandler):
    """In-memory data handler that records every call.

    calls is appended on the calling thread; written is appended by the
    write queue, so it reflects what has actually been persisted.
    """

    def __init__(self, label: str = "mem", active: bool = True) -> None:
        super().__init__(active=active)
        self.label = label
        self.calls: List[dict] = []
        self.written: List[str] = []

    def _handle(self, kind, payload, experiment, ppid, session_num, data_name, data_type):
        location = f"{self.label}/{experiment}/{ppid}/{session_num}/{data_name}"
        self.calls.append({
            "kind": kind,
            "payload": payload,
            "experiment": experiment,
            "ppid": ppid,
            "session_num": session_num,
            "data_name": data_name,
            "data_type": data_type,
            "location": location,
        })
        self.worker.submit(lambda: self.written.append(data_name))
        return location

    def handle_data_table(self, table, experiment, ppid, session_num, data_name,
                          data_type=DataType.OTHER):
        return self._handle("table", table.copy(), experiment, ppid, session_num, data_name, data_type)

    def handle_json_serializable_object(self, obj, experiment, ppid, session_num, data_name,
                                        data_type=DataType.OTHER):
        return self._handle("json", obj, experiment, ppid, session_num, data_name, data_type)

    def handle_text(self, text, experiment, ppid, session_num, data_name,
                    data_type=DataType.OTHER):
        return self._handle("text", text, experiment, ppid, session_num, data_name, data_type)

    def handle_bytes(self, data, experiment, ppid, session_num, data_name,
                     data_type=DataType.OTHER):
        return self._handle("bytes", data, experiment, ppid, session_num, data_name, data_type)

    def calls_named(self, data_name: str) -> List[dict]:
        return [c for c in self.calls if c["data_name"] == data_name]


class ListTracker(Tracker):
    """Tracker that returns preset value rows, repeating the last one."""

    def __init__(self, object_name: str = "cursor", descriptor: str = "movement",
                 header: Sequence[str] = ("pos_x", "pos_y"), values: Sequence[Sequence[Any]] = ()):
        super().__init__(object_name, descriptor, header)
        self.values = [list(v) for v in values] or [[0] * len(header)]
        self._index = 0

    def get_current_values(self):
        row = self.values[min(self._index, len(self.values) - 1)]
        self._index += 1
        return row


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp = tempfile.mkdtemp()
    yield temp
    shutil.rmtree(temp, ignore_errors=True)


@pytest.fixture
def handler():
    """Create an in-memory recording data handler."""
    return RecordingHandler()


@pytest.fixture
def tracker():
    """Create a two-column list tracker."""
    return ListTracker(values=[[1, 2], [3, 4], [5, 6]])


@pytest.fixture
def session(handler):
    """Create an inert session with one recording handler and custom headers."""
    s = Session(SessionConfig(custom_headers=("score",)), data_handlers=[handler])
    yield s
    s.end()


@pytest.fixture
def begun_session(session, temp_dir):
    """Create a session that has begun in a temporary folder."""
    session.begin("exp", "P01", temp_dir, session_number=1)
    return session


@pytest.fixture
def file_session(temp_dir):
    """Create a session writing real files through a FileSaver."""
    s = Session(
        SessionConfig(custom_headers=("score",), ad_hoc_header_add=True),
        data_handlers=[FileSaver(FileSaverConfig())],
    )
    yield s
    s.end()
