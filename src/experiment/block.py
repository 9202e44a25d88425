"""Block: an ordered group of trials sharing configuration."""

from typing import List, TYPE_CHECKING

from errors import NoSuchTrialError
from experiment.settings import Settings
from experiment.trial import Trial

if TYPE_CHECKING:
    from experiment.session import Session


class Block:
    """An ordered sequence of trials, owned by a Session.

    Blocks are created with Session.create_block(); the trials are created
    eagerly and the block is appended to session.blocks.

    Attributes:
        session: The session this block belongs to
        settings: Block settings, overriding session settings
        trials: Trials of this block, in order
    """

    def __init__(self, num_trials: int, session: "Session") -> None:
        """Create a block and register it with the session.

        Args:
            num_trials: Number of trials to create
            session: Owning session
        """
        if num_trials < 0:
            raise ValueError(f"Number of trials must be non-negative, got {num_trials}")

        self.session = session
        self.settings = Settings.empty(parent=session.settings)
        self.trials: List[Trial] = []

        session.blocks.append(self)
        for _ in range(num_trials):
            self.trials.append(Trial(self))

    @property
    def number(self) -> int:
        """1-indexed position of this block within the session."""
        return self.session.blocks.index(self) + 1

    @property
    def first_trial(self) -> Trial:
        """First trial of this block.

        Raises:
            NoSuchTrialError: If the block has no trials
        """
        if not self.trials:
            raise NoSuchTrialError("There is no first trial. This block has no trials.")
        return self.trials[0]

    @property
    def last_trial(self) -> Trial:
        """Last trial of this block.

        Raises:
            NoSuchTrialError: If the block has no trials
        """
        if not self.trials:
            raise NoSuchTrialError("There is no last trial. This block has no trials.")
        return self.trials[-1]

    def get_trial(self, number_in_block: int) -> Trial:
        """Get a trial by its 1-indexed number within this block.

        Raises:
            NoSuchTrialError: If the number is out of range
        """
        if not 1 <= number_in_block <= len(self.trials):
            raise NoSuchTrialError(
                f"Block has {len(self.trials)} trials, no trial {number_in_block}"
            )
        return self.trials[number_in_block - 1]

    def __len__(self) -> int:
        return len(self.trials)

    def __repr__(self) -> str:
        return f"Block(trials={len(self.trials)})"
