"""Experiment lifecycle package.

This package provides:
- Hierarchical settings (session -> block -> trial override chain)
- Trackers that buffer time-stamped rows while a trial is running
- Per-trial result rows and their reconciliation into one results table
- Trial, Block and Session lifecycle objects
- Synchronous, ordered event notifications
"""

from experiment.events import Event
from experiment.settings import Settings
from experiment.tracker import Tracker, CallableTracker
from experiment.results import ResultsDictionary, build_results_table, collect_headers
from experiment.trial import Trial, TrialStatus
from experiment.block import Block
from experiment.session import Session

__all__ = [
    # Events
    "Event",
    # Settings
    "Settings",
    # Trackers
    "Tracker",
    "CallableTracker",
    # Results
    "ResultsDictionary",
    "build_results_table",
    "collect_headers",
    # Lifecycle
    "Trial",
    "TrialStatus",
    "Block",
    "Session",
]
