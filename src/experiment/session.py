"""Session: a single run of an experiment for one participant.

The session owns the blocks and trials, the root settings, the trackers
and the data handlers, tracks which trial is current, and coordinates
saving. Session.end() blocks until every queued write has completed.
"""

import atexit
import logging
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from config import SessionConfig
from constants import (
    BASE_HEADERS,
    PARTICIPANT_DETAILS_NAME,
    SETTINGS_SNAPSHOT_NAME,
    TRIAL_RESULTS_NAME,
)
from data.abstractions import DataType, SessionIdentifier
from data.config_serializer import to_serializable
from data.data_table import DataTable
from data.handlers import DataHandler
from data.session_io import SessionDirectory
from data.worker import PersistenceWorker
from errors import (
    InvalidTransitionError,
    NoSuchBlockError,
    NoSuchTrialError,
    PathNotFoundError,
    UninitializedSessionError,
)
from experiment.block import Block
from experiment.events import Event
from experiment.results import build_results_table
from experiment.settings import Settings
from experiment.tracker import Tracker
from experiment.trial import Trial, TrialStatus

logger = logging.getLogger(__name__)


class Session:
    """Top-level orchestrator of an experiment run.

    Lifecycle:
        session = Session(SessionConfig(custom_headers=("score",)), data_handlers=[FileSaver()])
        session.begin("my_experiment", "P01", "data", session_number=1)
        block = session.create_block(10)
        for trial in block.trials:
            trial.begin()
            trial.result["score"] = ...
            trial.end()
        session.end()  # writes trial_results and waits for all files

    After end() the session is inert again and can be begun anew.

    Events (lists of callbacks, invoked synchronously in order):
        on_session_begin(session), on_trial_begin(trial),
        on_trial_end(trial), on_session_end(session), clean_up()
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        data_handlers: Optional[Sequence[DataHandler]] = None,
        trackers: Optional[Sequence[Tracker]] = None,
        worker: Optional[PersistenceWorker] = None,
    ) -> None:
        """Initialize an inert session.

        Args:
            config: Session configuration (default: SessionConfig())
            data_handlers: Storage backends; active ones receive every save
            trackers: Trackers recorded during every trial
            worker: Write queue (default: a new PersistenceWorker)
        """
        self.config = config or SessionConfig()
        self.data_handlers: List[DataHandler] = list(data_handlers or [])
        self.trackers: List[Tracker] = []
        for tracker in trackers or []:
            self.add_tracker(tracker)
        self.worker = worker or PersistenceWorker()

        self.blocks: List[Block] = []
        # Root of the settings chain; kept for the session's lifetime so
        # blocks always resolve through the same node
        self.settings = Settings.empty()
        self.participant_details: Dict[str, Any] = {}

        self.experiment_name: Optional[str] = None
        self.ppid: Optional[str] = None
        self.number: int = 0
        self.base_path: Optional[Path] = None
        self._session_id: Optional[SessionIdentifier] = None

        self.current_trial_num: int = 0
        self.current_block_num: int = 0

        self._has_initialised = False
        self._ending = False
        self._clock_start = time.monotonic()

        self.on_session_begin = Event("on_session_begin")
        self.on_trial_begin = Event("on_trial_begin")
        self.on_trial_end = Event("on_trial_end")
        self.on_session_end = Event("on_session_end")
        self.clean_up = Event("clean_up")

        if self.config.end_after_last_trial:
            self.on_trial_end.add_listener(self.end_if_last_trial)
        if self.config.end_on_exit:
            atexit.register(self.end)

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    def add_tracker(self, tracker: Tracker) -> None:
        """Register a tracker; its rows are timestamped with the session clock."""
        tracker.clock = self.time
        self.trackers.append(tracker)

    def add_data_handler(self, handler: DataHandler) -> None:
        """Register a storage backend.

        Raises:
            InvalidTransitionError: If the session has already begun
        """
        if self._has_initialised:
            raise InvalidTransitionError("Data handlers must be added before Session.begin()")
        self.data_handlers.append(handler)

    @property
    def active_data_handlers(self) -> List[DataHandler]:
        """Return active handlers, in registration order."""
        return [h for h in self.data_handlers if h.active]

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def has_initialised(self) -> bool:
        return self._has_initialised

    def time(self) -> float:
        """Seconds since the session began (monotonic)."""
        return time.monotonic() - self._clock_start

    @property
    def in_trial(self) -> bool:
        """Return True if the current trial is in progress."""
        if self.current_trial_num == 0:
            return False
        return self.current_trial.status is TrialStatus.IN_PROGRESS

    @property
    def trials(self) -> List[Trial]:
        """All trials of all blocks, in block order.

        Reordering this list has no effect; reorder block.trials instead.
        """
        return [trial for block in self.blocks for trial in block.trials]

    @property
    def tracking_headers(self) -> List[str]:
        """Results columns holding tracker file locations, one per active handler."""
        handler_count = len(self.active_data_handlers)
        return [
            tracker.location_header(index)
            for tracker in self.trackers
            for index in range(handler_count)
        ]

    @property
    def headers(self) -> List[str]:
        """Declared results columns: base, settings to log, custom, tracking."""
        combined = (
            BASE_HEADERS
            + list(self.config.settings_to_log)
            + list(self.config.custom_headers)
            + self.tracking_headers
        )
        return list(dict.fromkeys(combined))

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def _require_initialised(self, action: str) -> None:
        if not self._has_initialised:
            raise UninitializedSessionError(f"Cannot {action} before the session has begun")

    @property
    def session_id(self) -> SessionIdentifier:
        self._require_initialised("get the session identifier")
        return self._session_id

    @property
    def folder_name(self) -> str:
        """Name of the session folder (S###)."""
        return self.session_id.folder_name

    @property
    def experiment_path(self) -> Path:
        self._require_initialised("get the experiment path")
        return self.base_path / self.experiment_name

    @property
    def participant_path(self) -> Path:
        return self.experiment_path / self.ppid

    @property
    def full_path(self) -> Path:
        """Path of this session's folder."""
        return self.participant_path / self.folder_name

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def begin(
        self,
        experiment_name: str,
        ppid: str,
        base_path: Union[str, Path],
        session_number: int = 1,
        participant_details: Optional[Mapping[str, Any]] = None,
        settings: Optional[Union[Settings, Mapping[str, Any]]] = None,
    ) -> None:
        """Begin the session.

        Args:
            experiment_name: Name of the experiment (data folder name)
            ppid: Unique participant ID
            base_path: Existing folder where data is stored; relative paths
                are resolved against the current working directory
            session_number: Session number for this participant
            participant_details: Information about the participant
            settings: Session settings (a Settings node's own values or a mapping)

        Raises:
            PathNotFoundError: If base_path doesn't exist
            InvalidTransitionError: If the session has already begun
            ValueError: If the experiment name or participant ID is not a valid folder name
        """
        if self._has_initialised:
            raise InvalidTransitionError("Session has already begun. Call end() first.")

        base = Path(base_path)
        if not base.is_absolute():
            base = Path.cwd() / base
        if not base.is_dir():
            raise PathNotFoundError(f"Initialising session failed, cannot find {base}")

        self._session_id = SessionIdentifier(experiment_name, ppid, session_number)
        self.experiment_name = experiment_name
        self.ppid = ppid
        self.number = session_number
        self.base_path = base

        self.participant_details = dict(participant_details or {})

        if isinstance(settings, Settings):
            settings = settings.base_dict
        self.settings.clear()
        self.settings.update(settings or {})

        SessionDirectory(base, self._session_id).initialize()

        self.worker.begin()
        for handler in self.active_data_handlers:
            handler.set_up(self.worker, base)

        self.current_trial_num = 0
        self.current_block_num = 0
        self._clock_start = time.monotonic()
        self._has_initialised = True
        logger.info(f"Began session {self._session_id} in {base}")

        self.on_session_begin.invoke(self)

        if self.config.copy_session_settings:
            self.write_dict_to_session_folder(self.settings.base_dict, SETTINGS_SNAPSHOT_NAME)

        if self.config.copy_participant_details:
            table = DataTable.from_mapping(self.participant_details)
            self._save_to_handlers(
                lambda handler: handler.handle_data_table(
                    table, self.experiment_name, self.ppid, self.number,
                    PARTICIPANT_DETAILS_NAME, data_type=DataType.SESSION_INFO,
                )
            )

    def end(self) -> None:
        """End the session.

        Ends the current trial if one is in progress, saves the trial
        results, runs clean_up listeners, then blocks until every queued
        write has finished before invoking on_session_end. Does nothing if
        the session has not begun.

        If a step raises, the remaining steps up to the drain still run and
        the session is reset before the exception propagates. on_session_end
        is only invoked after a clean shutdown.
        """
        if not self._has_initialised or self._ending:
            return

        self._ending = True
        try:
            try:
                if self.in_trial:
                    self.current_trial.end()
            finally:
                try:
                    self._save_results()
                    self.clean_up.invoke()
                finally:
                    # Forces all pending files to be written
                    self.worker.end()

            if self.worker.errors:
                logger.error(f"{len(self.worker.errors)} write job(s) failed during the session")

            self.on_session_end.invoke(self)
        finally:
            self.current_trial_num = 0
            self.current_block_num = 0
            self.blocks = []
            self._has_initialised = False
            self._ending = False

        logger.info("Ended session.")

    def _save_results(self) -> List[str]:
        table = build_results_table(self.trials)
        logger.debug(f"Saving results: {table.num_rows} trials, {table.num_columns} columns")
        return self._save_to_handlers(
            lambda handler: handler.handle_data_table(
                table, self.experiment_name, self.ppid, self.number,
                TRIAL_RESULTS_NAME, data_type=DataType.TRIAL_RESULTS,
            )
        )

    def _save_to_handlers(self, handle: Callable[[DataHandler], str]) -> List[str]:
        return [handle(handler).replace("\\", "/") for handler in self.active_data_handlers]

    # -------------------------------------------------------------------------
    # Blocks and trials
    # -------------------------------------------------------------------------

    def create_block(self, num_trials: Optional[int] = None) -> Block:
        """Create a block, append it to session.blocks and return it.

        Args:
            num_trials: Number of trials; must be >= 1 if given.
                Omit to create an empty block.

        Raises:
            ValueError: If num_trials is given and less than 1
        """
        if num_trials is None:
            return Block(0, self)
        if num_trials < 1:
            raise ValueError(f"Invalid number of trials supplied: {num_trials}")
        return Block(num_trials, self)

    def get_trial(self, trial_number: int) -> Trial:
        """Get a trial by its 1-indexed number across the session.

        Raises:
            NoSuchTrialError: If the number is out of range
        """
        trials = self.trials
        if not 1 <= trial_number <= len(trials):
            raise NoSuchTrialError(f"There is no trial {trial_number} ({len(trials)} trials exist)")
        return trials[trial_number - 1]

    @property
    def current_trial(self) -> Trial:
        """The active trial, or the most recent one when between trials.

        Raises:
            NoSuchTrialError: If no trial has begun yet
        """
        if self.current_trial_num == 0:
            raise NoSuchTrialError(
                "There is no trial zero. At the start of the session use next_trial "
                "to get the first trial."
            )
        return self.get_trial(self.current_trial_num)

    @property
    def next_trial(self) -> Trial:
        """The trial after the current one.

        Raises:
            NoSuchTrialError: If the current trial is the last one
        """
        trials = self.trials
        if self.current_trial_num >= len(trials):
            raise NoSuchTrialError("There is no next trial. Reached the end of trial list.")
        return trials[self.current_trial_num]

    @property
    def prev_trial(self) -> Trial:
        """The trial before the current one.

        Raises:
            NoSuchTrialError: If at the start of the session
        """
        if self.current_trial_num < 2:
            raise NoSuchTrialError(
                "There is no previous trial. Probably, currently at the start of session."
            )
        return self.get_trial(self.current_trial_num - 1)

    @property
    def first_trial(self) -> Trial:
        """The first trial of the first block.

        Raises:
            NoSuchTrialError: If there are no blocks or the first block is empty
        """
        if not self.blocks:
            raise NoSuchTrialError("There is no first trial because no blocks have been created!")
        return self.blocks[0].first_trial

    @property
    def last_trial(self) -> Trial:
        """The last trial of the last block.

        Raises:
            NoSuchTrialError: If there are no blocks or the last block is empty
        """
        if not self.blocks:
            raise NoSuchTrialError("There is no last trial because no blocks have been created!")
        return self.blocks[-1].last_trial

    def get_block(self, block_number: int) -> Block:
        """Get a block by its 1-indexed number.

        Raises:
            NoSuchBlockError: If the number is out of range
        """
        if not 1 <= block_number <= len(self.blocks):
            raise NoSuchBlockError(
                f"There is no block {block_number} ({len(self.blocks)} blocks exist)"
            )
        return self.blocks[block_number - 1]

    @property
    def current_block(self) -> Block:
        """The block of the current trial.

        Raises:
            NoSuchBlockError: If no trial has begun yet
        """
        if self.current_block_num == 0:
            raise NoSuchBlockError("There is no current block. No trial has begun yet.")
        return self.get_block(self.current_block_num)

    def begin_next_trial(self) -> Trial:
        """Begin the next trial and return it."""
        trial = self.next_trial
        trial.begin()
        return trial

    def begin_next_trial_safe(self) -> Optional[Trial]:
        """Begin the next trial if one exists.

        Returns:
            The trial begun, or None if the current trial is the last
        """
        try:
            trial = self.next_trial
        except NoSuchTrialError:
            return None
        trial.begin()
        return trial

    def end_current_trial(self) -> None:
        """End the current trial."""
        self.current_trial.end()

    def end_if_last_trial(self, trial: Trial) -> None:
        """End the session if the given trial is the last trial."""
        try:
            last_trial = self.last_trial
        except NoSuchTrialError:
            return
        if trial is last_trial:
            self.end()

    # -------------------------------------------------------------------------
    # Session folder I/O
    # -------------------------------------------------------------------------

    def write_dict_to_session_folder(self, mapping: Mapping[str, Any], object_name: str) -> List[str]:
        """Save a dictionary as JSON to the session folder through every handler.

        Returns:
            Locations, one per active handler

        Raises:
            UninitializedSessionError: If the session hasn't begun
        """
        self._require_initialised("write a dictionary")
        snapshot = to_serializable(dict(mapping))
        return self._save_to_handlers(
            lambda handler: handler.handle_json_serializable_object(
                snapshot, self.experiment_name, self.ppid, self.number,
                object_name, data_type=DataType.SESSION_INFO,
            )
        )

    def copy_file_to_session_folder(self, file_path: Union[str, Path]) -> Path:
        """Copy a file into the session folder on the write queue.

        Returns:
            Destination path

        Raises:
            UninitializedSessionError: If the session hasn't begun
        """
        self._require_initialised("copy a file")
        source = Path(file_path)
        destination = self.full_path / source.name
        self.worker.submit(lambda: shutil.copyfile(source, destination))
        return destination

    def read_settings_file(
        self,
        path: Union[str, Path],
        callback: Callable[[Dict[str, Any]], None],
    ) -> None:
        """Read a JSON settings file on the write queue, then call callback with it.

        May be used before begin(), e.g. to load the settings passed to it.
        The callback runs on the worker thread.
        """
        self.worker.begin()
        self.worker.submit(lambda: callback(Settings.from_json_file(path).base_dict))

    def read_file_string(self, path: Union[str, Path], callback: Callable[[str], None]) -> None:
        """Read a text file on the write queue, then call callback with its contents."""
        self.worker.begin()
        self.worker.submit(lambda: callback(Path(path).read_text(encoding="utf-8")))

    def __repr__(self) -> str:
        identity = str(self._session_id) if self._has_initialised else "not begun"
        return f"Session({identity}, blocks={len(self.blocks)}, trial={self.current_trial_num})"
