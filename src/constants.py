"""Shared constants for experiment sessions.

This module consolidates header names, file names and formatting rules used
across experiment/session.py, experiment/trial.py and data/handlers.py.
"""

from typing import Dict, List

# =============================================================================
# Results Headers
# =============================================================================

# Always included in the trial results output, in this order
BASE_HEADERS: List[str] = [
    'directory',
    'experiment',
    'ppid',
    'session_num',
    'trial_num',
    'block_num',
    'trial_num_in_block',
    'start_time',
    'end_time',
]

TRACKER_TIME_HEADER = 'time'

# =============================================================================
# Naming Conventions
# =============================================================================

SESSION_FOLDER_FORMAT = 'S{:03d}'
TRIAL_DATA_NAME_FORMAT = '{}_T{:03d}'
LOCATION_HEADER_FORMAT = '{}_location_{}'

TRIAL_RESULTS_NAME = 'trial_results'
SETTINGS_SNAPSHOT_NAME = 'settings'
PARTICIPANT_DETAILS_NAME = 'participant_details'

# =============================================================================
# CSV Formatting
# =============================================================================

CSV_DELIMITER = ','
# Commas inside values are replaced, never quoted, so every line splits cleanly
CSV_COMMA_REPLACEMENT = '_'
# Line breaks inside values would split a row
CSV_LINE_BREAKS = ('\r\n', '\n', '\r')
CSV_LINE_BREAK_REPLACEMENT = ' '

# =============================================================================
# File Extensions
# =============================================================================

FILE_EXTENSIONS: Dict[str, str] = {
    'table': '.csv',
    'json': '.json',
    'text': '.txt',
    'bytes': '.bytes',
}

JSON_INDENT = 4
