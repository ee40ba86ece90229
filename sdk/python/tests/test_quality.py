"""Tests for the telcogen data-quality processor."""

import threading

import pytest

from telcogen.processors.quality import (
    QualityAggregate,
    QualityValidator,
    QualityViolation,
    calculate_score,
    validate_event,
)
from telcogen.schema import (
    AlertLevel,
    CallEvent,
    CallEventType,
    Location,
    NetworkEvent,
    NetworkMetrics,
    NetworkQuality,
    SessionEvent,
    SessionEventType,
)

NOW = 1_700_000_000_000


def _call(**overrides):
    data = dict(
        event_id="e-1",
        timestamp=NOW,
        caller_phone_number="2125550100",
        callee_phone_number="3105550101",
        call_id="call-1",
        cell_tower_id="CELL_0001",
        location=Location(latitude=40.7, longitude=-74.0),
    )
    data.update(overrides)
    return CallEvent(**data)


def _session(**overrides):
    data = dict(
        event_id="e-2",
        timestamp=NOW,
        phone_number="2125550100",
        session_id="s-1",
        imsi="310123456789012",
        apn="internet",
        network_quality=NetworkQuality(signal_strength=-80, bandwidth=50_000_000, network_type="5G"),
    )
    data.update(overrides)
    return SessionEvent(**data)


def _network(**metric_overrides):
    metrics = dict(latency=40.0, packet_loss=0.0, jitter=5.0, throughput=1_000_000_000, active_connections=300)
    metrics.update(metric_overrides)
    return NetworkEvent(
        event_id="e-3",
        timestamp=NOW,
        cell_tower_id="CELL_0042",
        metrics=NetworkMetrics(**metrics),
        alert_level=AlertLevel.NORMAL,
    )


def _violation(rule):
    return QualityViolation(rule=rule, message="m", field="f")


class TestCalculateScore:
    def test_no_violations(self):
        assert calculate_score([]) == 100.0

    @pytest.mark.parametrize("rule,expected", [
        ("COMPLETENESS", 80.0),
        ("BUSINESS_RULE", 75.0),
        ("FORMAT", 85.0),
        ("VALIDITY", 85.0),
        ("REASONABLENESS", 95.0),
        ("SOMETHING_ELSE", 90.0),
    ])
    def test_single_penalty(self, rule, expected):
        assert calculate_score([_violation(rule)]) == expected

    def test_penalties_add_up(self):
        violations = [_violation("FORMAT"), _violation("VALIDITY"), _violation("REASONABLENESS")]
        assert calculate_score(violations) == 65.0

    def test_clamped_at_zero(self):
        violations = [_violation("COMPLETENESS")] * 6
        assert calculate_score(violations) == 0.0


class TestCallEventRules:
    def test_clean_event_is_valid(self):
        result = validate_event(_call(), now_ms=NOW)
        assert result.valid
        assert result.violations == []
        assert result.score == 100.0

    def test_tampered_event(self):
        event = _call(
            event_id="",
            caller_phone_number="123",
            callee_phone_number="123",
            timestamp=-1,
            location=Location(latitude=100, longitude=200),
        )
        result = validate_event(event, now_ms=NOW)
        assert not result.valid
        assert {"COMPLETENESS", "FORMAT", "VALIDITY", "BUSINESS_RULE"} <= result.rules
        assert result.score < 100.0

    def test_missing_numbers(self):
        result = validate_event(_call(caller_phone_number=None, callee_phone_number=""), now_ms=NOW)
        fields = [(v.rule, v.field) for v in result.violations]
        assert ("COMPLETENESS", "caller_phone_number") in fields
        assert ("COMPLETENESS", "callee_phone_number") in fields
        assert ("FORMAT", "caller_phone_number") in fields
        # Caller == callee needs both numbers present
        assert "BUSINESS_RULE" not in result.rules

    def test_phone_number_with_non_ascii_digits_rejected(self):
        result = validate_event(_call(caller_phone_number="２１２５５５０１００"), now_ms=NOW)
        assert ("FORMAT", "caller_phone_number") in [(v.rule, v.field) for v in result.violations]

    def test_future_timestamp(self):
        result = validate_event(_call(timestamp=NOW + 10 * 60 * 1000), now_ms=NOW)
        assert [v.field for v in result.violations] == ["timestamp"]
        assert result.score == 85.0

    def test_small_clock_skew_tolerated(self):
        assert validate_event(_call(timestamp=NOW + 60 * 1000), now_ms=NOW).valid

    def test_call_end_requires_positive_duration(self):
        result = validate_event(_call(event_type=CallEventType.CALL_END, duration=0), now_ms=NOW)
        assert result.rules == {"BUSINESS_RULE"}
        assert result.score == 75.0

    def test_call_end_without_duration(self):
        result = validate_event(_call(event_type=CallEventType.CALL_END), now_ms=NOW)
        assert [v.field for v in result.violations] == ["duration"]

    def test_unreasonably_long_call(self):
        result = validate_event(_call(event_type=CallEventType.CALL_END, duration=90_000), now_ms=NOW)
        assert result.rules == {"REASONABLENESS"}
        assert result.score == 95.0

    def test_duration_ignored_on_call_start(self):
        assert validate_event(_call(duration=0), now_ms=NOW).valid

    def test_missing_location_is_not_checked(self):
        assert validate_event(_call(location=None), now_ms=NOW).valid

    def test_all_rules_are_evaluated(self):
        event = _call(
            event_id="",
            caller_phone_number="",
            callee_phone_number="",
            timestamp=0,
            event_type=CallEventType.CALL_END,
            duration=-5,
            location=Location(latitude=-91, longitude=181),
        )
        result = validate_event(event, now_ms=NOW)
        assert sum(1 for v in result.violations if v.rule == "COMPLETENESS") == 3
        assert result.score == 0.0


class TestSessionEventRules:
    def test_clean_event_is_valid(self):
        assert validate_event(_session(), now_ms=NOW).valid

    def test_completeness_violations(self):
        result = validate_event(_session(event_id="", phone_number=None, session_id="", imsi=None), now_ms=NOW)
        completeness = [v.field for v in result.violations if v.rule == "COMPLETENESS"]
        assert completeness == ["event_id", "phone_number", "session_id", "imsi"]

    def test_bad_imsi_format(self):
        result = validate_event(_session(imsi="31012345"), now_ms=NOW)
        assert [(v.rule, v.field) for v in result.violations] == [("FORMAT", "imsi")]

    def test_network_quality_checks(self):
        quality = NetworkQuality(signal_strength=-20, bandwidth=0, network_type="6G")
        result = validate_event(_session(network_quality=quality), now_ms=NOW)
        assert [v.field for v in result.violations] == [
            "network_quality.signal_strength",
            "network_quality.bandwidth",
            "network_quality.network_type",
        ]
        assert result.score == 55.0

    def test_lte_and_2g_are_valid_network_types(self):
        for network_type in ("LTE", "2G"):
            quality = NetworkQuality(signal_strength=-90, bandwidth=1000, network_type=network_type)
            assert validate_event(_session(network_quality=quality), now_ms=NOW).valid

    def test_session_end_requires_data_usage(self):
        result = validate_event(_session(event_type=SessionEventType.SESSION_END), now_ms=NOW)
        assert [(v.rule, v.field) for v in result.violations] == [("BUSINESS_RULE", "data_usage")]

    def test_session_end_with_zero_usage_is_valid(self):
        event = _session(event_type=SessionEventType.SESSION_END, data_usage=0)
        assert validate_event(event, now_ms=NOW).valid


class TestNetworkEventRules:
    def test_clean_event_is_valid(self):
        assert validate_event(_network(), now_ms=NOW).valid

    def test_validity_and_reasonableness_fire_together(self):
        result = validate_event(_network(latency=1200.0, packet_loss=1.5), now_ms=NOW)
        pairs = {(v.rule, v.field) for v in result.violations}
        assert pairs == {
            ("VALIDITY", "metrics.latency"),
            ("VALIDITY", "metrics.packet_loss"),
            ("REASONABLENESS", "metrics.latency"),
            ("REASONABLENESS", "metrics.packet_loss"),
        }
        assert result.score == 60.0

    def test_reasonableness_only(self):
        result = validate_event(_network(latency=600.0, packet_loss=0.2), now_ms=NOW)
        assert result.rules == {"REASONABLENESS"}
        assert result.score == 90.0

    def test_range_checks(self):
        result = validate_event(
            _network(jitter=150.0, throughput=0, active_connections=-1), now_ms=NOW,
        )
        assert [v.field for v in result.violations] == [
            "metrics.jitter", "metrics.throughput", "metrics.active_connections",
        ]

    def test_missing_tower(self):
        event = NetworkEvent(event_id="e", timestamp=NOW, cell_tower_id=None)
        result = validate_event(event, now_ms=NOW)
        assert [(v.rule, v.field) for v in result.violations] == [("COMPLETENESS", "cell_tower_id")]

    def test_unknown_type_rejected(self):
        with pytest.raises(TypeError):
            validate_event({"event_id": "x"}, now_ms=NOW)


class TestQualityAggregate:
    def setup_method(self):
        self.aggregate = QualityAggregate()

    def test_empty_report(self):
        report = self.aggregate.snapshot()
        assert report.total_events_processed == 0
        assert report.average_quality_score == 100.0
        assert report.quality_percentage == 100.0
        assert report.violations_by_rule == {}

    def test_report_counts(self):
        self.aggregate.record(validate_event(_call(), now_ms=NOW))
        self.aggregate.record(validate_event(_call(caller_phone_number="12"), now_ms=NOW))
        self.aggregate.record(validate_event(_network(latency=700.0), now_ms=NOW))
        self.aggregate.record(validate_event(_session(), now_ms=NOW))

        report = self.aggregate.snapshot()
        assert report.total_events_processed == 4
        assert report.valid_events_count == 2
        assert report.invalid_events_count == 2
        assert report.quality_percentage == 50.0
        assert report.average_quality_score == pytest.approx((100 + 85 + 95 + 100) / 4)
        assert report.violations_by_rule == {"FORMAT": 1, "REASONABLENESS": 1}

    def test_reset(self):
        self.aggregate.record(validate_event(_call(caller_phone_number="12"), now_ms=NOW))
        self.aggregate.reset()
        assert self.aggregate.total == 0
        assert self.aggregate.snapshot().violations_by_rule == {}

    def test_concurrent_record(self):
        result = validate_event(_call(), now_ms=NOW)

        def work():
            for _ in range(1000):
                self.aggregate.record(result)

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert self.aggregate.total == 4000


class TestQualityValidator:
    def test_validate_records_into_shared_aggregate(self):
        aggregate = QualityAggregate()
        validator = QualityValidator(aggregate, clock=lambda: NOW)
        validator.validate(_call())
        validator.validate(_call(timestamp=-1))
        assert aggregate.total == 2
        report = validator.report()
        assert report.invalid_events_count == 1
        assert report.violations_by_rule == {"VALIDITY": 1}

    def test_clock_drives_future_timestamp_rule(self):
        validator = QualityValidator(clock=lambda: NOW)
        assert not validator.validate(_call(timestamp=NOW + 3_600_000)).valid

    def test_reset(self):
        validator = QualityValidator(clock=lambda: NOW)
        validator.validate(_call())
        validator.reset()
        assert validator.aggregate.total == 0
