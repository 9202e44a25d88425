"""Continuous per-tick samplers attached to tracked entities.

A Tracker buffers one fixed-width row per sampling tick while recording.
At the end of each trial the buffer is snapshotted as a DataTable and
persisted through the session's data handlers.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

from constants import LOCATION_HEADER_FORMAT, TRACKER_TIME_HEADER
from data.data_table import DataTable
from errors import SchemaViolationError


class Tracker(ABC):
    """Base class for frame-by-frame measurement of one entity.

    Subclasses implement get_current_values(), returning exactly one value
    per custom header column. The host loop calls update() once per tick.

    Usage:
        class CursorTracker(Tracker):
            def get_current_values(self):
                return [cursor.x, cursor.y]

        tracker = CursorTracker("cursor", "movement", ["pos_x", "pos_y"])
        session.add_tracker(tracker)
    """

    def __init__(
        self,
        object_name: str,
        measurement_descriptor: str,
        custom_header: Sequence[str],
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize a tracker.

        Args:
            object_name: Name of the tracked object, used in file names
            measurement_descriptor: Kind of measurement (e.g. 'movement')
            custom_header: Column names for the sampled values (time is prepended)
            clock: Time source for rows; Session.add_tracker replaces it
                with the session clock

        Raises:
            ValueError: If the descriptor is empty or a column name is repeated
        """
        if not measurement_descriptor:
            raise ValueError(f"No measurement descriptor specified for tracker {object_name!r}")

        self.object_name = object_name.replace(" ", "_").lower()
        self.measurement_descriptor = measurement_descriptor
        self.custom_header: List[str] = list(custom_header)
        if len(set(self.header)) != len(self.header):
            raise ValueError(f"Duplicate tracker columns: {self.header}")

        self.clock: Callable[[], float] = clock or time.monotonic
        self._recording = False
        self._data: List[List[Any]] = []

    @property
    def header(self) -> List[str]:
        """Return the full column list: time followed by the custom header."""
        return [TRACKER_TIME_HEADER] + self.custom_header

    @property
    def data_name(self) -> str:
        """Return the name used when saving this tracker's data."""
        return f"{self.object_name}_{self.measurement_descriptor}"

    def location_header(self, handler_index: int) -> str:
        """Return the results column holding this tracker's file location."""
        return LOCATION_HEADER_FORMAT.format(self.data_name, handler_index)

    @property
    def recording(self) -> bool:
        return self._recording

    @property
    def num_rows(self) -> int:
        return len(self._data)

    def start_recording(self) -> None:
        """Clear the buffer and begin recording."""
        self._data.clear()
        self._recording = True

    def pause_recording(self) -> None:
        """Stop appending rows; the buffer is kept."""
        self._recording = False

    def stop_recording(self) -> None:
        """Stop appending rows; the buffer is kept until the next start_recording()."""
        self._recording = False

    def update(self, timestamp: Optional[float] = None) -> bool:
        """Sample once if recording.

        Args:
            timestamp: Time for this row (default: self.clock())

        Returns:
            True if a row was appended

        Raises:
            SchemaViolationError: If the sampled values don't match the custom header
        """
        if not self._recording:
            return False

        values = list(self.get_current_values())
        if len(values) != len(self.custom_header):
            raise SchemaViolationError(
                f"{type(self).__name__} {self.data_name!r} provided {len(values)} values "
                f"but has {len(self.custom_header)} custom headers"
            )

        t = self.clock() if timestamp is None else timestamp
        self._data.append([t] + values)
        return True

    def get_data_copy(self) -> DataTable:
        """Return a snapshot of the buffer as a DataTable."""
        table = DataTable(self.header)
        for row in self._data:
            table.add_row_values(row)
        return table

    def to_array(self) -> np.ndarray:
        """Return the buffer as a float matrix of shape (rows, len(header)).

        Raises:
            ValueError: If a value cannot be converted to float
        """
        if not self._data:
            return np.empty((0, len(self.header)), dtype=float)
        return np.asarray(self._data, dtype=float)

    @abstractmethod
    def get_current_values(self) -> Sequence[Any]:
        """Acquire values for this tick, one per custom header column."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.data_name!r}, "
            f"recording={self._recording}, rows={len(self._data)})"
        )


class CallableTracker(Tracker):
    """Tracker whose sampling strategy is a plain function.

    Usage:
        tracker = CallableTracker("mouse", "position", ["x", "y"], lambda: (mx, my))
    """

    def __init__(
        self,
        object_name: str,
        measurement_descriptor: str,
        custom_header: Sequence[str],
        sampler: Callable[[], Sequence[Any]],
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        super().__init__(object_name, measurement_descriptor, custom_header, clock=clock)
        self.sampler = sampler

    def get_current_values(self) -> Sequence[Any]:
        return self.sampler()
