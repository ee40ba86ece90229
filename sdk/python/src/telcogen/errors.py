"""telcogen error taxonomy.

Rule violations found by the quality validator are not exceptions; they are
returned as :class:`~telcogen.processors.quality.QualityViolation` data.
"""

from __future__ import annotations


class TelcoGenError(Exception):
    """Base class for all telcogen errors."""


class DuplicateSessionError(TelcoGenError):
    """Raised when a lifecycle entry is opened under an id that is already open."""

    def __init__(self, kind: str, session_id: str) -> None:
        super().__init__(f"{kind} session '{session_id}' is already open")
        self.kind = kind
        self.session_id = session_id


class PublishError(TelcoGenError):
    """Transport failure reported by a publish sink through its future."""

    def __init__(self, topic: str, routing_key: str, reason: str) -> None:
        super().__init__(f"Failed to publish to {topic} (key={routing_key}): {reason}")
        self.topic = topic
        self.routing_key = routing_key
        self.reason = reason


class ConfigurationError(TelcoGenError, ValueError):
    """Raised when a configuration snapshot is internally inconsistent."""
