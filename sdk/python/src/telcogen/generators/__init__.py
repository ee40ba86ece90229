"""telcogen Generators.

Synthetic field values and the event generator that turns them into call,
data-session and cell-tower events.
"""

from telcogen.generators.events import BatchSummary, EventGenerator, batch_sizes
from telcogen.generators.synthetic import SyntheticDataFactory, alert_level_for

__all__ = [
    "BatchSummary",
    "EventGenerator",
    "SyntheticDataFactory",
    "alert_level_for",
    "batch_sizes",
]
