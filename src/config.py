"""Configuration dataclasses for experiment sessions."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from constants import BASE_HEADERS


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a Session."""

    # If True, results not declared in custom_headers can be added at any time.
    # If False, adding an undeclared result raises SchemaViolationError.
    ad_hoc_header_add: bool = False

    # Snapshot session settings / participant details to the session folder on begin
    copy_session_settings: bool = True
    copy_participant_details: bool = True

    end_after_last_trial: bool = False
    end_on_exit: bool = False  # Register Session.end with atexit

    # Dependent variables measured on each trial
    custom_headers: Tuple[str, ...] = field(default_factory=tuple)

    # Settings (independent variables) copied into the results on each trial
    settings_to_log: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept lists for convenience, store tuples because frozen=True
        object.__setattr__(self, 'custom_headers', tuple(self.custom_headers))
        object.__setattr__(self, 'settings_to_log', tuple(self.settings_to_log))

        for header in self.custom_headers + self.settings_to_log:
            if not isinstance(header, str) or not header.strip():
                raise ValueError(f"Invalid header name: {header!r}")
            if header in BASE_HEADERS:
                raise ValueError(f"Header {header!r} collides with a base header")

        if len(set(self.custom_headers)) != len(self.custom_headers):
            raise ValueError(f"Duplicate custom headers: {self.custom_headers}")


@dataclass(frozen=True)
class FileSaverConfig:
    """Configuration for the local filesystem data handler."""

    storage_path: Optional[str] = None  # None = use the session base path
    sort_by_data_type: bool = True  # Put trackers/, session_info/ etc. in subfolders
    verbose: bool = False  # Log every completed write at INFO instead of DEBUG


@dataclass
class Config:
    """Master configuration combining all config sections."""

    session: SessionConfig = field(default_factory=SessionConfig)
    file_saver: FileSaverConfig = field(default_factory=FileSaverConfig)
