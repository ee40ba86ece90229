"""Tests for the telcogen synthetic data factory."""

import re

from telcogen.config import GeneratorConfig
from telcogen.generators.synthetic import (
    ACCESS_POINT_NAMES,
    CELL_TOWER_IDS,
    GENERATED_NETWORK_TYPES,
    SyntheticDataFactory,
    alert_level_for,
)
from telcogen.schema import AlertLevel


class TestAlertLevel:
    def test_normal(self):
        assert alert_level_for(50.0, 0.0) == AlertLevel.NORMAL

    def test_warning_on_latency(self):
        assert alert_level_for(150.0, 0.0) == AlertLevel.WARNING

    def test_warning_on_packet_loss(self):
        assert alert_level_for(50.0, 0.03) == AlertLevel.WARNING

    def test_critical_overrides_warning(self):
        assert alert_level_for(250.0, 0.06) == AlertLevel.CRITICAL

    def test_critical_on_packet_loss_alone(self):
        assert alert_level_for(10.0, 0.051) == AlertLevel.CRITICAL

    def test_thresholds_are_strict(self):
        assert alert_level_for(100.0, 0.02) == AlertLevel.NORMAL
        assert alert_level_for(200.0, 0.05) == AlertLevel.WARNING


class TestSyntheticDataFactory:
    def setup_method(self):
        self.factory = SyntheticDataFactory(seed=1234)

    def test_phone_number_is_ten_digits(self):
        for _ in range(200):
            assert re.fullmatch(r"\d{10}", self.factory.phone_number())

    def test_phone_number_respects_config_range(self):
        config = GeneratorConfig(phone_number={"min": 5555550000, "max": 5555550009})
        factory = SyntheticDataFactory(config, seed=7)
        for _ in range(50):
            assert 5555550000 <= int(factory.phone_number()) <= 5555550009

    def test_imsi_is_fifteen_digits_with_prefix(self):
        for _ in range(100):
            imsi = self.factory.imsi()
            assert re.fullmatch(r"\d{15}", imsi)
            assert imsi.startswith("310")

    def test_cell_tower_id_from_pool(self):
        tower = self.factory.cell_tower_id()
        assert tower in CELL_TOWER_IDS
        assert CELL_TOWER_IDS[0] == "CELL_0001"
        assert CELL_TOWER_IDS[-1] == "CELL_1000"

    def test_location_inside_bounding_box(self):
        for _ in range(100):
            location = self.factory.location()
            assert 25.0 <= location.latitude <= 49.0
            assert -125.0 <= location.longitude <= -65.0

    def test_apn_from_pool(self):
        assert self.factory.apn() in ACCESS_POINT_NAMES

    def test_network_quality_ranges(self):
        for _ in range(100):
            quality = self.factory.network_quality()
            assert -120 <= quality.signal_strength <= -50
            assert 1_000_000 <= quality.bandwidth <= 100_000_000
            assert quality.network_type in GENERATED_NETWORK_TYPES

    def test_data_usage_range(self):
        for _ in range(100):
            assert 0 <= self.factory.data_usage() < 100_000_000

    def test_new_id_is_uuid(self):
        value = self.factory.new_id()
        assert re.fullmatch(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}", value)

    def test_seeded_factories_are_reproducible(self):
        a = SyntheticDataFactory(seed=99)
        b = SyntheticDataFactory(seed=99)
        assert [a.phone_number() for _ in range(5)] == [b.phone_number() for _ in range(5)]
        assert a.new_id() == b.new_id()


class TestNetworkMetrics:
    def setup_method(self):
        self.factory = SyntheticDataFactory(seed=42)

    def test_metrics_are_clamped(self):
        for _ in range(500):
            metrics = self.factory.network_metrics(base_latency=0.0).metrics
            assert metrics.latency >= 0.0
            assert 0.0 <= metrics.packet_loss <= 1.0
            assert metrics.jitter >= 0.0
            assert metrics.throughput >= 0
            assert 100 <= metrics.active_connections < 1100

    def test_no_packet_loss_when_probability_zero(self):
        for _ in range(100):
            sample = self.factory.network_metrics(packet_loss_probability=0.0)
            assert sample.metrics.packet_loss == 0.0

    def test_packet_loss_bounded_when_always_lossy(self):
        for _ in range(100):
            sample = self.factory.network_metrics(packet_loss_probability=1.0)
            assert 0.0 < sample.metrics.packet_loss <= 0.05

    def test_jitter_bounded_by_max(self):
        for _ in range(100):
            sample = self.factory.network_metrics(max_jitter=5.0)
            assert 0.0 <= sample.metrics.jitter <= 5.0

    def test_alert_level_matches_metrics(self):
        for _ in range(100):
            sample = self.factory.network_metrics(base_latency=150.0)
            metrics = sample.metrics
            assert sample.alert_level == alert_level_for(metrics.latency, metrics.packet_loss)

    def test_high_base_latency_raises_alerts(self):
        sample = self.factory.network_metrics(base_latency=400.0, max_jitter=0.0)
        assert sample.alert_level == AlertLevel.CRITICAL
