"""telcogen Processors.

Data-quality scoring of generated events.
"""

from telcogen.processors.quality import (
    QualityAggregate,
    QualityReport,
    QualityResult,
    QualityValidator,
    QualityViolation,
    calculate_score,
    validate_event,
)

__all__ = [
    "QualityAggregate",
    "QualityReport",
    "QualityResult",
    "QualityValidator",
    "QualityViolation",
    "calculate_score",
    "validate_event",
]
