"""Data handlers: pluggable storage backends for session data.

A data handler receives a payload (table, JSON-serializable object, text or
bytes), schedules its persistence on the session's write queue and returns
a location string that is recorded in the trial results.

FileSaver is the local filesystem implementation.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from config import FileSaverConfig
from constants import FILE_EXTENSIONS
from data.abstractions import DataType, SessionIdentifier
from data.config_serializer import to_json
from data.data_table import DataTable
from data.worker import PersistenceWorker

logger = logging.getLogger(__name__)

# Subfolder used for each data type when sorting by data type
DATA_TYPE_FOLDERS = {
    DataType.TRIAL_RESULTS: None,
    DataType.PARTICIPANT_LIST: None,
    DataType.TRACKERS: "trackers",
    DataType.SESSION_INFO: "session_info",
    DataType.OTHER: "other",
}


class DataHandler(ABC):
    """Base class for storage backends.

    Handlers are set up by Session.begin() with the session's write queue
    and base path. Every handle_* method must return quickly: the actual
    write is submitted to the worker, and the returned location must be
    valid once the worker has drained.
    """

    def __init__(self, active: bool = True) -> None:
        """Initialize the handler.

        Args:
            active: Inactive handlers are skipped by the session
        """
        self.active = active
        self._worker: Optional[PersistenceWorker] = None
        self._base_path: Optional[Path] = None

    @property
    def worker(self) -> PersistenceWorker:
        """Return the write queue this handler submits to.

        Raises:
            RuntimeError: If set_up() hasn't been called
        """
        if self._worker is None:
            raise RuntimeError(f"{type(self).__name__} used before set_up()")
        return self._worker

    @property
    def base_path(self) -> Optional[Path]:
        """Return the session base path given to set_up()."""
        return self._base_path

    def set_up(self, worker: PersistenceWorker, base_path: Union[str, Path]) -> None:
        """Attach the handler to a session's write queue.

        Args:
            worker: The session's persistence worker
            base_path: The session's base path
        """
        self._worker = worker
        self._base_path = Path(base_path)

    @abstractmethod
    def handle_data_table(
        self,
        table: DataTable,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        """Persist a DataTable and return its location."""

    @abstractmethod
    def handle_json_serializable_object(
        self,
        obj: Any,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        """Persist a JSON-serializable object and return its location."""

    @abstractmethod
    def handle_text(
        self,
        text: str,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        """Persist a string and return its location."""

    @abstractmethod
    def handle_bytes(
        self,
        data: bytes,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        """Persist raw bytes and return its location."""


class FileSaver(DataHandler):
    """Writes session data to the local filesystem.

    Directory structure (with sort_by_data_type):
        {storage_path}/{experiment}/{ppid}/S###/
            trial_results.csv
            session_info/
                settings.json
                participant_details.csv
            trackers/
                cursor_movement_T001.csv
            other/

    Returned locations are relative to storage_path and use '/' separators.

    Usage:
        saver = FileSaver(FileSaverConfig(storage_path="data"))
        session = Session(data_handlers=[saver])
    """

    def __init__(
        self,
        config: Optional[FileSaverConfig] = None,
        active: bool = True,
    ) -> None:
        """Initialize the file saver.

        Args:
            config: File saver configuration (default: FileSaverConfig())
            active: Inactive handlers are skipped by the session
        """
        super().__init__(active=active)
        self.config = config or FileSaverConfig()

    @property
    def storage_path(self) -> Path:
        """Return the root folder files are written under.

        Raises:
            RuntimeError: If no storage path is configured and set_up() hasn't been called
        """
        if self.config.storage_path is not None:
            return Path(self.config.storage_path)
        if self._base_path is None:
            raise RuntimeError("FileSaver has no storage path. Call set_up() first.")
        return self._base_path

    def get_paths(
        self,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType,
        extension: str,
    ) -> Tuple[Path, str]:
        """Compute where a payload will be written.

        Returns:
            (absolute file path, location relative to storage_path)
        """
        relative = SessionIdentifier(experiment, ppid, session_num).relative_path
        if self.config.sort_by_data_type:
            subfolder = DATA_TYPE_FOLDERS[data_type]
            if subfolder is not None:
                relative = relative / subfolder
        relative = relative / f"{data_name}{extension}"
        return self.storage_path / relative, relative.as_posix()

    def handle_data_table(
        self,
        table: DataTable,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        path, location = self.get_paths(
            experiment, ppid, session_num, data_name, data_type, FILE_EXTENSIONS['table']
        )
        # Materialize on the calling thread so later changes to table are not written
        text = "\n".join(table.get_csv_lines()) + "\n"
        self.worker.submit(lambda: self._write_text(path, text))
        return location

    def handle_json_serializable_object(
        self,
        obj: Any,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        path, location = self.get_paths(
            experiment, ppid, session_num, data_name, data_type, FILE_EXTENSIONS['json']
        )
        text = to_json(obj)
        self.worker.submit(lambda: self._write_text(path, text))
        return location

    def handle_text(
        self,
        text: str,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        path, location = self.get_paths(
            experiment, ppid, session_num, data_name, data_type, FILE_EXTENSIONS['text']
        )
        text = str(text)
        self.worker.submit(lambda: self._write_text(path, text))
        return location

    def handle_bytes(
        self,
        data: bytes,
        experiment: str,
        ppid: str,
        session_num: int,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> str:
        path, location = self.get_paths(
            experiment, ppid, session_num, data_name, data_type, FILE_EXTENSIONS['bytes']
        )
        data = bytes(data)
        self.worker.submit(lambda: self._write_bytes(path, data))
        return location

    def _write_text(self, path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        self._log_written(path)

    def _write_bytes(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        self._log_written(path)

    def _log_written(self, path: Path) -> None:
        if self.config.verbose:
            logger.info(f"Saved {path}")
        else:
            logger.debug(f"Saved {path}")
