"""telcogen Semantic Convention Attribute Constants.

Span attribute keys recorded by the generator and the quality processor.
All keys live in the ``telco.*`` namespace.
"""


class GeneratorAttributes:
    """Attributes recorded on generation tick spans."""

    TICK_RATE = "telco.tick.rate"
    TICK_PARALLEL = "telco.tick.parallel"

    # Planned batch sizes per event kind
    BATCH_CALL_SIZE = "telco.tick.batch.call.size"
    BATCH_SESSION_SIZE = "telco.tick.batch.session.size"
    BATCH_NETWORK_SIZE = "telco.tick.batch.network.size"

    # Outcome counters
    EVENTS_GENERATED = "telco.tick.events.generated"
    EVENTS_SKIPPED = "telco.tick.events.skipped"
    EVENTS_DROPPED = "telco.tick.events.dropped"
    EVENTS_FAILED = "telco.tick.events.failed"

    # Registry occupancy after the tick
    OPEN_CALLS = "telco.registry.open_calls"
    OPEN_SESSIONS = "telco.registry.open_sessions"

    # Per-event span event attributes
    EVENT_KIND = "telco.event.kind"
    EVENT_ID = "telco.event.id"


class QualityAttributes:
    """Attributes describing data-quality outcomes."""

    SCORE = "telco.quality.score"
    VALID = "telco.quality.valid"
    VIOLATION_COUNT = "telco.quality.violation.count"
    AVERAGE_SCORE = "telco.quality.average_score"

    # Span event emitted for each dropped event
    EVENT_INVALID = "telco.quality.invalid_event"


class PublishAttributes:
    """Attributes describing sink hand-off."""

    TOPIC = "telco.publish.topic"
    SINK = "telco.publish.sink"
