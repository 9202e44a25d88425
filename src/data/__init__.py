"""Data architecture package for session persistence.

This package provides:
- Session identity and folder naming (experiment / participant / S###)
- Session directory creation
- Rectangular data tables with CSV materialization
- JSON snapshot serialization
- Ordered background write queue
- Pluggable data handlers (local filesystem FileSaver)
"""

from data.abstractions import (
    DataType,
    SessionIdentifier,
    session_exists,
    session_num_to_name,
)
from data.session_io import SessionDirectory
from data.config_serializer import to_serializable, to_json
from data.data_table import DataTable, format_value
from data.worker import PersistenceWorker
from data.handlers import DataHandler, FileSaver

__all__ = [
    # Abstractions
    "DataType",
    "SessionIdentifier",
    "session_exists",
    "session_num_to_name",
    # Session I/O
    "SessionDirectory",
    # Serialization
    "to_serializable",
    "to_json",
    # Tables
    "DataTable",
    "format_value",
    # Persistence
    "PersistenceWorker",
    "DataHandler",
    "FileSaver",
]
