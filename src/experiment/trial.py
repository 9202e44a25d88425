"""Trial: the atomic unit of an experiment.

A trial is usually a single attempt at a task by a participant after or
during the presentation of a stimulus. Its lifecycle is strictly
NOT_DONE -> IN_PROGRESS -> DONE.
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from constants import LOCATION_HEADER_FORMAT, TRIAL_DATA_NAME_FORMAT
from data.abstractions import DataType
from data.config_serializer import to_serializable
from data.data_table import DataTable
from errors import InvalidTransitionError, UninitializedSessionError
from experiment.results import ResultsDictionary
from experiment.settings import Settings

if TYPE_CHECKING:
    from data.handlers import DataHandler
    from experiment.block import Block
    from experiment.session import Session

logger = logging.getLogger(__name__)


class TrialStatus(Enum):
    """Status of a trial."""

    NOT_DONE = "not_done"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Trial:
    """One measured attempt, owned by a Block.

    Trials are created by Session.create_block(); their numbers are derived
    from their position, so reordering block.trials before the session
    starts changes the trial numbers.

    Attributes:
        block: The block this trial belongs to
        session: The session this trial belongs to
        settings: Trial settings, overriding block and session settings
        status: Current TrialStatus
        result: Results for this trial (None until begin())
    """

    def __init__(self, block: "Block") -> None:
        self.block = block
        self.session: "Session" = block.session
        self.settings = Settings.empty(parent=block.settings)
        self.status = TrialStatus.NOT_DONE
        self.result: Optional[ResultsDictionary] = None
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    @property
    def number(self) -> int:
        """1-indexed position among all trials of the session, in block order."""
        for index, trial in enumerate(self.session.trials):
            if trial is self:
                return index + 1
        raise LookupError("Trial is no longer part of its session")

    @property
    def number_in_block(self) -> int:
        """1-indexed position within this trial's block."""
        return self.block.trials.index(self) + 1

    @property
    def duration(self) -> Optional[float]:
        """Seconds between begin() and end(), or None if not finished."""
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def begin(self) -> None:
        """Begin the trial.

        Updates the session's current trial and block numbers, starts the
        trial timer, creates the results row and starts every tracker.

        Raises:
            UninitializedSessionError: If the session hasn't begun
            InvalidTransitionError: If this trial was already begun, or
                another trial is in progress
        """
        session = self.session
        if not session.has_initialised:
            raise UninitializedSessionError("Cannot begin a trial before the session has begun")
        if self.status is not TrialStatus.NOT_DONE:
            raise InvalidTransitionError(
                f"Cannot begin trial {self.number}: status is {self.status.value}"
            )
        if session.in_trial:
            raise InvalidTransitionError(
                f"Cannot begin trial {self.number}: trial {session.current_trial_num} is in progress"
            )

        number = self.number
        session.current_trial_num = number
        session.current_block_num = self.block.number

        self.status = TrialStatus.IN_PROGRESS
        self.start_time = session.time()

        self.result = ResultsDictionary(session.headers, ad_hoc=session.config.ad_hoc_header_add)
        self.result["directory"] = str(session.session_id)
        self.result["experiment"] = session.experiment_name
        self.result["ppid"] = session.ppid
        self.result["session_num"] = session.number
        self.result["trial_num"] = number
        self.result["block_num"] = self.block.number
        self.result["trial_num_in_block"] = self.number_in_block
        self.result["start_time"] = self.start_time

        for tracker in session.trackers:
            tracker.start_recording()

        logger.debug(f"Began trial {number} (block {self.block.number})")
        session.on_trial_begin.invoke(self)

    def end(self) -> None:
        """End the trial.

        Stops every tracker and saves its data, logs the session's
        settings_to_log into the results, then marks the trial done.

        Settings to log are resolved first: if one is missing the trial is
        left unchanged and still in progress.

        Raises:
            InvalidTransitionError: If the trial is not in progress
            SettingNotFoundError: If a setting to log is not set anywhere in the chain
        """
        if self.status is not TrialStatus.IN_PROGRESS:
            raise InvalidTransitionError(
                f"Cannot end trial {self.number}: status is {self.status.value}"
            )

        session = self.session
        logged_settings = {key: self.settings.get(key) for key in session.config.settings_to_log}

        self.end_time = session.time()
        self.result["end_time"] = self.end_time

        for tracker in session.trackers:
            tracker.stop_recording()
            self.save_data_table(tracker.get_data_copy(), tracker.data_name, DataType.TRACKERS)

        for key, value in logged_settings.items():
            self.result[key] = value

        self.status = TrialStatus.DONE
        logger.debug(f"Ended trial {self.number} after {self.duration:.3f}s")
        session.on_trial_end.invoke(self)

    def save_data_table(
        self,
        table: DataTable,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> List[str]:
        """Save a DataTable through every active data handler.

        A results column '{data_name}_location_{i}' records where handler i
        stored it. The saved name is suffixed with the trial number.

        Returns:
            Locations, one per active handler
        """
        table = table.copy()
        return self._save_to_handlers(
            data_name,
            lambda handler, name: handler.handle_data_table(
                table, self.session.experiment_name, self.session.ppid, self.session.number,
                name, data_type=data_type,
            ),
        )

    def save_json_serializable_object(
        self,
        obj: Any,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> List[str]:
        """Save a JSON-serializable object through every active data handler.

        The object is converted to plain JSON values before hand-off, so
        later changes to it are not saved.
        """
        snapshot = to_serializable(obj)
        return self._save_to_handlers(
            data_name,
            lambda handler, name: handler.handle_json_serializable_object(
                snapshot, self.session.experiment_name, self.session.ppid, self.session.number,
                name, data_type=data_type,
            ),
        )

    def save_text(
        self,
        text: str,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> List[str]:
        """Save a string through every active data handler."""
        return self._save_to_handlers(
            data_name,
            lambda handler, name: handler.handle_text(
                text, self.session.experiment_name, self.session.ppid, self.session.number,
                name, data_type=data_type,
            ),
        )

    def save_bytes(
        self,
        data: bytes,
        data_name: str,
        data_type: DataType = DataType.OTHER,
    ) -> List[str]:
        """Save raw bytes through every active data handler."""
        return self._save_to_handlers(
            data_name,
            lambda handler, name: handler.handle_bytes(
                data, self.session.experiment_name, self.session.ppid, self.session.number,
                name, data_type=data_type,
            ),
        )

    def _save_to_handlers(
        self,
        data_name: str,
        handle: Callable[["DataHandler", str], str],
    ) -> List[str]:
        if self.result is None:
            raise InvalidTransitionError(f"Cannot save {data_name!r}: trial has not begun")

        name = TRIAL_DATA_NAME_FORMAT.format(data_name, self.number)
        locations = []
        for index, handler in enumerate(self.session.active_data_handlers):
            location = handle(handler, name).replace("\\", "/")
            self.result.add_column(LOCATION_HEADER_FORMAT.format(data_name, index), location)
            locations.append(location)
        return locations

    def __repr__(self) -> str:
        return f"Trial(status={self.status.value}, start_time={self.start_time})"
