"""Session directory management for data persistence.

Provides the folder structure for one session:
- Experiment folder (shared by all participants)
- Participant folder (shared by all sessions of one participant)
- Session folder (S###), holding results, trackers and session info
"""

import logging
from pathlib import Path
from typing import Union

from data.abstractions import SessionIdentifier

logger = logging.getLogger(__name__)


class SessionDirectory:
    """Manages the folder of a single session.

    Directory structure:
        {base_path}/{experiment}/{ppid}/S{number:03d}/
            trial_results.csv
            participant_details.csv
            session_info/
                settings.json
            trackers/
                {object}_{descriptor}_T001.csv

    Unlike a write-once store, a session folder may be reused: if it
    already exists a warning is logged and later writes may overwrite files.

    Usage:
        session_dir = SessionDirectory(base_path, SessionIdentifier("exp", "p01", 1))
        session_dir.initialize()
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        session_id: SessionIdentifier,
    ) -> None:
        """Initialize a session directory manager.

        Args:
            base_path: Base path for all experiments
            session_id: Identity of the session
        """
        self._base_path = Path(base_path)
        self._session_id = session_id
        self._existed_before = False

    @property
    def session_id(self) -> SessionIdentifier:
        """Return the session identifier."""
        return self._session_id

    @property
    def base_path(self) -> Path:
        """Return the base path."""
        return self._base_path

    @property
    def experiment_path(self) -> Path:
        """Return the experiment folder path."""
        return self._base_path / self._session_id.experiment

    @property
    def participant_path(self) -> Path:
        """Return the participant folder path."""
        return self.experiment_path / self._session_id.ppid

    @property
    def root_path(self) -> Path:
        """Return the session folder path."""
        return self.participant_path / self._session_id.folder_name

    @property
    def existed_before(self) -> bool:
        """Return True if the session folder existed when initialize() ran."""
        return self._existed_before

    def exists(self) -> bool:
        """Check if the session folder exists."""
        return self.root_path.is_dir()

    def initialize(self) -> bool:
        """Create the experiment, participant and session folders.

        Returns:
            True if the session folder was newly created, False if it already existed
        """
        self._existed_before = self.exists()
        if self._existed_before:
            logger.warning(
                f"Session already exists: {self.root_path}. Continuing will overwrite."
            )
            return False

        self.root_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized session directory: {self.root_path}")
        return True
