"""Formal abstractions for data architecture.

Defines the identifiers for the three-level storage hierarchy:
- Experiment: Named study, one folder under the base path
- Participant: One folder per participant ID within the experiment
- Session: One numbered folder (S001, S002, ...) per participant visit
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from constants import SESSION_FOLDER_FORMAT


class DataType(Enum):
    """Kind of data being persisted, used by handlers to sort output."""

    TRIAL_RESULTS = 'trial_results'
    TRACKERS = 'trackers'
    SESSION_INFO = 'session_info'
    PARTICIPANT_LIST = 'participant_list'
    OTHER = 'other'


def session_num_to_name(number: int) -> str:
    """Convert a session number to its folder name (e.g. 1 -> 'S001')."""
    return SESSION_FOLDER_FORMAT.format(number)


@dataclass(frozen=True)
class SessionIdentifier:
    """Identity of one session: experiment, participant and session number.

    The identifier is purely a naming convention; it does not touch the
    filesystem. Folder layout is base_path/experiment/ppid/S###.

    Attributes:
        experiment: Experiment name (used as directory name)
        ppid: Participant ID (used as directory name)
        number: 1-indexed session number for this participant
    """

    experiment: str
    ppid: str
    number: int = 1

    def __post_init__(self) -> None:
        """Validate names are usable as directory names."""
        invalid_chars = set('<>:"/\\|?*')
        for label, value in (("Experiment name", self.experiment), ("Participant ID", self.ppid)):
            if not value or not value.strip():
                raise ValueError(f"{label} cannot be empty or whitespace")
            if any(char in value for char in invalid_chars):
                raise ValueError(f"{label} contains invalid characters: {value}")
        if self.number < 0:
            raise ValueError(f"Session number must be non-negative, got {self.number}")

    @property
    def folder_name(self) -> str:
        """Return the session folder name (S###)."""
        return session_num_to_name(self.number)

    @property
    def relative_path(self) -> Path:
        """Return the session folder path relative to a base path."""
        return Path(self.experiment) / self.ppid / self.folder_name

    def path_in(self, base_path: Union[str, Path]) -> Path:
        """Return the session folder path within base_path."""
        return Path(base_path) / self.relative_path

    @classmethod
    def from_path(cls, session_path: Union[str, Path]) -> "SessionIdentifier":
        """Parse an identifier from a session folder path.

        Args:
            session_path: Path ending in experiment/ppid/S###

        Returns:
            Parsed SessionIdentifier

        Raises:
            ValueError: If the last component is not a session folder name
        """
        path = Path(session_path)
        folder = path.name
        if len(folder) < 2 or folder[0] != "S" or not folder[1:].isdigit():
            raise ValueError(f"Invalid session folder name: {folder}")
        return cls(experiment=path.parent.parent.name, ppid=path.parent.name, number=int(folder[1:]))

    def __str__(self) -> str:
        """Return the canonical string representation."""
        return self.relative_path.as_posix()


def session_exists(
    experiment: str,
    ppid: str,
    base_path: Union[str, Path],
    number: int,
) -> bool:
    """Check if a session folder already exists for this participant.

    Args:
        experiment: Experiment name
        ppid: Participant ID
        base_path: Base folder for all experiments
        number: Session number

    Returns:
        True if base_path/experiment/ppid/S### is an existing directory
    """
    return SessionIdentifier(experiment, ppid, number).path_in(base_path).is_dir()
