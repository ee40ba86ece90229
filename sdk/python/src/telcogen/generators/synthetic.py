"""telcogen Synthetic Data Factory.

Produces randomized but plausible field values for telecom events: phone
numbers, IMSIs, cell towers, coordinates and radio/network metrics. Every
generator draws from one shared ``random.Random`` and has no other side
effects, so a seeded factory is fully reproducible.

Locations are drawn from a continental-US bounding box
(latitude 25..49, longitude -125..-65). This is a simplification of the
simulated footprint, not a global distribution.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass

from telcogen.config import GeneratorConfig
from telcogen.schema import AlertLevel, Location, NetworkMetrics, NetworkQuality

# ---------------------------------------------------------------------------
# Seed data pools
# ---------------------------------------------------------------------------

CELL_TOWER_IDS: tuple[str, ...] = tuple(f"CELL_{i:04d}" for i in range(1, 1001))

ACCESS_POINT_NAMES: tuple[str, ...] = ("internet", "mms", "wap", "vzwinternet", "broadband")

GENERATED_NETWORK_TYPES: tuple[str, ...] = ("4G", "5G", "3G")

IMSI_PREFIX = "310"

LATITUDE_RANGE = (25.0, 49.0)
LONGITUDE_RANGE = (-125.0, -65.0)

SIGNAL_STRENGTH_RANGE = (-120, -50)  # dBm
BANDWIDTH_RANGE = (1_000_000, 100_000_000)  # bps

LATENCY_NOISE_SIGMA = 10.0
MAX_PACKET_LOSS = 0.05
THROUGHPUT_MEAN = 1_000_000_000
THROUGHPUT_SIGMA = 100_000_000
ACTIVE_CONNECTIONS_RANGE = (100, 1100)  # upper bound exclusive

# Alert thresholds
WARNING_LATENCY_MS = 100.0
WARNING_PACKET_LOSS = 0.02
CRITICAL_LATENCY_MS = 200.0
CRITICAL_PACKET_LOSS = 0.05


def alert_level_for(latency: float, packet_loss: float) -> AlertLevel:
    """Classify a cell-tower sample.

    WARNING when latency exceeds 100 ms or packet loss exceeds 2%; escalated
    to CRITICAL when latency also exceeds 200 ms or loss exceeds 5%.
    """
    level = AlertLevel.NORMAL
    if latency > WARNING_LATENCY_MS or packet_loss > WARNING_PACKET_LOSS:
        level = AlertLevel.WARNING
    if latency > CRITICAL_LATENCY_MS or packet_loss > CRITICAL_PACKET_LOSS:
        level = AlertLevel.CRITICAL
    return level


@dataclass(frozen=True)
class MetricsSample:
    """Network metrics together with their derived alert level."""

    metrics: NetworkMetrics
    alert_level: AlertLevel


class SyntheticDataFactory:
    """Field-value generators bounded by a :class:`GeneratorConfig`.

    Usage:
        factory = SyntheticDataFactory(config, seed=42)
        factory.phone_number()     # "4155550123"
        factory.cell_tower_id()    # "CELL_0042"
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> None:
        self._config = config or GeneratorConfig()
        self._rng = rng if rng is not None else random.Random(seed)

    @property
    def rng(self) -> random.Random:
        return self._rng

    def new_id(self) -> str:
        """Random UUID string derived from the factory's random source."""
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

    def phone_number(self) -> str:
        phone = self._config.phone_number
        return str(self._rng.randint(phone.min, phone.max))

    def cell_tower_id(self) -> str:
        return self._rng.choice(CELL_TOWER_IDS)

    def location(self) -> Location:
        return Location(
            latitude=self._rng.uniform(*LATITUDE_RANGE),
            longitude=self._rng.uniform(*LONGITUDE_RANGE),
        )

    def imsi(self) -> str:
        return f"{IMSI_PREFIX}{self._rng.randrange(10**12):012d}"

    def apn(self) -> str:
        return self._rng.choice(ACCESS_POINT_NAMES)

    def network_quality(self) -> NetworkQuality:
        return NetworkQuality(
            signal_strength=self._rng.randint(*SIGNAL_STRENGTH_RANGE),
            bandwidth=self._rng.randint(*BANDWIDTH_RANGE),
            network_type=self._rng.choice(GENERATED_NETWORK_TYPES),
        )

    def data_usage(self) -> int:
        """Bytes transferred during a data session, in [0, 100 MB)."""
        return self._rng.randrange(100_000_000)

    def network_metrics(
        self,
        base_latency: float | None = None,
        max_jitter: float | None = None,
        packet_loss_probability: float | None = None,
    ) -> MetricsSample:
        """Draw one cell-tower sample; unspecified parameters come from config."""
        network = self._config.network
        if base_latency is None:
            base_latency = network.base_latency
        if max_jitter is None:
            max_jitter = network.max_jitter
        if packet_loss_probability is None:
            packet_loss_probability = network.packet_loss_probability

        rng = self._rng
        latency = max(0.0, base_latency + rng.gauss(0.0, LATENCY_NOISE_SIGMA))
        if rng.random() < packet_loss_probability:
            # (0, 0.05]: 1 - random() is never 0
            packet_loss = MAX_PACKET_LOSS * (1.0 - rng.random())
        else:
            packet_loss = 0.0
        jitter = rng.uniform(0.0, max_jitter)
        throughput = max(0, int(THROUGHPUT_MEAN + rng.gauss(0.0, THROUGHPUT_SIGMA)))
        active_connections = rng.randrange(*ACTIVE_CONNECTIONS_RANGE)

        metrics = NetworkMetrics(
            latency=latency,
            packet_loss=packet_loss,
            jitter=jitter,
            throughput=throughput,
            active_connections=active_connections,
        )
        return MetricsSample(metrics=metrics, alert_level=alert_level_for(latency, packet_loss))
