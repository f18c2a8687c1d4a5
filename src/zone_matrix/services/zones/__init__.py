"""Zone roster, partition and lifecycle services."""

from .leftovers import LeftoverPool
from .partition import PartitionEngine, StateStats
from .roster import SequentialOrdering, UnorderedSelection, ZoneRoster
from .workflow import ConfirmationPrompt, SaveOutcome, ZoneWorkflow

__all__ = [
    "ConfirmationPrompt",
    "LeftoverPool",
    "PartitionEngine",
    "SaveOutcome",
    "SequentialOrdering",
    "StateStats",
    "UnorderedSelection",
    "ZoneRoster",
    "ZoneWorkflow",
]
