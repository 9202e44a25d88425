#!/usr/bin/env python3
"""Run a synthetic experiment session and write its data to disk.

Usage:
    python scripts/run_session.py --base-path data --experiment demo --ppid P01
    python scripts/run_session.py --blocks 3 --trials 10 --ticks 120 --seed 7

Each trial records a 2D random walk with a tracker sampled once per tick.
Block settings vary the step size; the trial result is the walk's final
distance from the origin. Output layout:
    {base_path}/{experiment}/{ppid}/S###/trial_results.csv
    {base_path}/{experiment}/{ppid}/S###/trackers/walker_position_T###.csv
    {base_path}/{experiment}/{ppid}/S###/session_info/settings.json
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add src to path for imports
SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
SRC_DIR = PROJECT_ROOT / "src"
sys.path.insert(0, str(SRC_DIR))

from config import Config, FileSaverConfig, SessionConfig
from data.handlers import FileSaver
from experiment.session import Session
from experiment.tracker import Tracker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)


class RandomWalkTracker(Tracker):
    """Tracks a point taking normally distributed steps."""

    def __init__(self, rng: np.random.Generator) -> None:
        super().__init__("walker", "position", ["pos_x", "pos_y"])
        self.rng = rng
        self.step_size = 1.0
        self.position = np.zeros(2)

    def reset(self, step_size: float) -> None:
        self.step_size = step_size
        self.position = np.zeros(2)

    def step(self) -> None:
        self.position = self.position + self.rng.normal(0.0, self.step_size, size=2)

    def get_current_values(self):
        return [round(float(v), 4) for v in self.position]


def run_session(args: argparse.Namespace) -> Path:
    """Run all blocks and trials of one session.

    Returns:
        Path of the session folder
    """
    rng = np.random.default_rng(args.seed)
    walker = RandomWalkTracker(rng)

    config = Config(
        session=SessionConfig(
            custom_headers=("final_distance", "max_distance"),
            settings_to_log=("step_size",),
        ),
        file_saver=FileSaverConfig(verbose=args.verbose),
    )
    session = Session(config.session, data_handlers=[FileSaver(config.file_saver)])
    session.add_tracker(walker)

    base_path = Path(args.base_path)
    base_path.mkdir(parents=True, exist_ok=True)
    session.begin(
        args.experiment,
        args.ppid,
        base_path,
        session_number=args.session,
        participant_details={"seed": args.seed, "kind": "synthetic"},
        settings={"step_size": 1.0, "ticks": args.ticks},
    )
    full_path = session.full_path

    for block_index in range(args.blocks):
        block = session.create_block(args.trials)
        block.settings["step_size"] = 0.5 * (block_index + 1)

    while True:
        trial = session.begin_next_trial_safe()
        if trial is None:
            break

        walker.reset(trial.settings["step_size"])
        distances = []
        for _ in range(trial.settings["ticks"]):
            walker.step()
            walker.update()
            distances.append(float(np.linalg.norm(walker.position)))

        trial.result["final_distance"] = round(distances[-1], 4) if distances else 0.0
        trial.result["max_distance"] = round(max(distances), 4) if distances else 0.0
        trial.end()

    session.end()
    return full_path


def main():
    parser = argparse.ArgumentParser(
        description="Run a synthetic experiment session"
    )
    parser.add_argument(
        "--base-path",
        default=str(PROJECT_ROOT / "data"),
        help="Folder where experiment data is stored (created if missing)",
    )
    parser.add_argument(
        "--experiment",
        default="random_walk",
        help="Experiment name (used as directory name)",
    )
    parser.add_argument(
        "--ppid",
        default="P01",
        help="Participant ID (used as directory name)",
    )
    parser.add_argument(
        "--session",
        type=int,
        default=1,
        help="Session number",
    )
    parser.add_argument(
        "--blocks",
        type=int,
        default=2,
        help="Number of blocks",
    )
    parser.add_argument(
        "--trials",
        type=int,
        default=5,
        help="Trials per block",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=60,
        help="Tracker samples per trial",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every file written",
    )

    args = parser.parse_args()

    if args.blocks < 1 or args.trials < 1:
        parser.error("--blocks and --trials must be at least 1")

    full_path = run_session(args)
    print(f"\nSession data written to {full_path}")
    print(f"  Results: {full_path / 'trial_results.csv'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
