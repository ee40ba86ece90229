"""telcogen configuration snapshot.

The generator, factory and scheduler read a single immutable
:class:`GeneratorConfig`. Snapshots can be built from keyword arguments, a
mapping, a JSON file, or ``TELCOGEN_*`` environment variables. Inconsistent
settings are rejected at load time with
:class:`~telcogen.errors.ConfigurationError`.

Usage::

    from telcogen.config import GeneratorConfig, load_config

    config = load_config("/etc/telcogen/config.json")
    config = GeneratorConfig.from_env()
    config = GeneratorConfig(rates={"default_rate": 500})
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from telcogen.errors import ConfigurationError
from telcogen.schema import EventKind

logger = logging.getLogger(__name__)

_ENV_PREFIX = "TELCOGEN_"

PHONE_NUMBER_FLOOR = 1_000_000_000
PHONE_NUMBER_CEILING = 9_999_999_999


class TopicsConfig(BaseModel):
    """Topic keys per event kind."""
    model_config = ConfigDict(frozen=True)

    call_events: str = "telco.call.events"
    session_events: str = "telco.session.events"
    network_events: str = "telco.network.events"

    def for_kind(self, kind: EventKind) -> str:
        return {
            EventKind.CALL: self.call_events,
            EventKind.SESSION: self.session_events,
            EventKind.NETWORK: self.network_events,
        }[kind]


class RatesConfig(BaseModel):
    """Target generation rate (events per second) and its allowed bounds."""
    model_config = ConfigDict(frozen=True)

    default_rate: int = 1000
    min: int = 100
    max: int = 10000

    @model_validator(mode="after")
    def check_bounds(self) -> "RatesConfig":
        if self.min <= 0:
            raise ValueError(f"rates.min must be positive, got {self.min}")
        if self.min > self.max:
            raise ValueError(f"rates.min ({self.min}) exceeds rates.max ({self.max})")
        if not self.min <= self.default_rate <= self.max:
            raise ValueError(
                f"rates.default_rate ({self.default_rate}) must be within "
                f"[{self.min}, {self.max}]"
            )
        return self


class PhoneNumberConfig(BaseModel):
    """Inclusive numeric range phone numbers are drawn from.

    Both bounds must be ten-digit numbers and the range must hold at least
    two of them so a caller can always be paired with a different callee.
    """
    model_config = ConfigDict(frozen=True)

    min: int = PHONE_NUMBER_FLOOR
    max: int = PHONE_NUMBER_CEILING

    @model_validator(mode="after")
    def check_range(self) -> "PhoneNumberConfig":
        for name, value in (("min", self.min), ("max", self.max)):
            if not PHONE_NUMBER_FLOOR <= value <= PHONE_NUMBER_CEILING:
                raise ValueError(
                    f"phone_number.{name} must be a ten-digit number "
                    f"({PHONE_NUMBER_FLOOR}..{PHONE_NUMBER_CEILING}), got {value}"
                )
        if self.min >= self.max:
            raise ValueError(
                f"phone_number range needs at least two numbers, "
                f"got min={self.min} max={self.max}"
            )
        return self


class NetworkConfig(BaseModel):
    """Parameters of the synthetic cell-tower metric distributions."""
    model_config = ConfigDict(frozen=True)

    base_latency: float = 50.0
    max_jitter: float = 20.0
    packet_loss_probability: float = 0.01

    @model_validator(mode="after")
    def check_parameters(self) -> "NetworkConfig":
        if self.base_latency < 0:
            raise ValueError("network.base_latency must be >= 0")
        if self.max_jitter < 0:
            raise ValueError("network.max_jitter must be >= 0")
        if not 0.0 <= self.packet_loss_probability <= 1.0:
            raise ValueError("network.packet_loss_probability must be within [0, 1]")
        return self


class QualityConfig(BaseModel):
    """Pre-publish data-quality check settings."""
    model_config = ConfigDict(frozen=True)

    validate_before_publish: bool = True
    drop_invalid_events: bool = True


class KafkaConfig(BaseModel):
    """Connection settings for the Kafka publish sink."""
    model_config = ConfigDict(frozen=True)

    bootstrap_servers: str = "localhost:9092"
    client_id: str = "telcogen"
    acks: str = "1"
    linger_ms: int = 10
    compression_type: str | None = None


class GeneratorConfig(BaseModel):
    """Complete configuration snapshot for one generator process."""
    model_config = ConfigDict(frozen=True)

    topics: TopicsConfig = Field(default_factory=TopicsConfig)
    rates: RatesConfig = Field(default_factory=RatesConfig)
    phone_number: PhoneNumberConfig = Field(default_factory=PhoneNumberConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    kafka: KafkaConfig = Field(default_factory=KafkaConfig)
    generation_interval_ms: int = 1000
    parallel_batches: bool = False

    @model_validator(mode="after")
    def check_interval(self) -> "GeneratorConfig":
        if self.generation_interval_ms <= 0:
            raise ValueError("generation_interval_ms must be positive")
        return self

    @property
    def generation_interval_seconds(self) -> float:
        return self.generation_interval_ms / 1000.0

    # -- loaders ------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GeneratorConfig":
        """Build a snapshot from a (possibly nested) mapping."""
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid generator configuration: {exc}") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GeneratorConfig":
        """Build a snapshot from ``TELCOGEN_*`` environment variables.

        Recognised variables::

            TELCOGEN_RATE, TELCOGEN_RATE_MIN, TELCOGEN_RATE_MAX
            TELCOGEN_PHONE_MIN, TELCOGEN_PHONE_MAX
            TELCOGEN_BASE_LATENCY, TELCOGEN_MAX_JITTER, TELCOGEN_PACKET_LOSS_PROBABILITY
            TELCOGEN_TOPIC_CALL, TELCOGEN_TOPIC_SESSION, TELCOGEN_TOPIC_NETWORK
            TELCOGEN_INTERVAL_MS, TELCOGEN_PARALLEL
            KAFKA_BOOTSTRAP_SERVERS
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        def put(section: str | None, key: str, var: str, cast: Any = str) -> None:
            raw = env.get(var)
            if raw is None or raw == "":
                return
            try:
                value = cast(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{var}={raw!r} is not a valid value") from exc
            if section is None:
                data[key] = value
            else:
                data.setdefault(section, {})[key] = value

        put("rates", "default_rate", _ENV_PREFIX + "RATE", int)
        put("rates", "min", _ENV_PREFIX + "RATE_MIN", int)
        put("rates", "max", _ENV_PREFIX + "RATE_MAX", int)
        put("phone_number", "min", _ENV_PREFIX + "PHONE_MIN", int)
        put("phone_number", "max", _ENV_PREFIX + "PHONE_MAX", int)
        put("network", "base_latency", _ENV_PREFIX + "BASE_LATENCY", float)
        put("network", "max_jitter", _ENV_PREFIX + "MAX_JITTER", float)
        put("network", "packet_loss_probability", _ENV_PREFIX + "PACKET_LOSS_PROBABILITY", float)
        put("topics", "call_events", _ENV_PREFIX + "TOPIC_CALL")
        put("topics", "session_events", _ENV_PREFIX + "TOPIC_SESSION")
        put("topics", "network_events", _ENV_PREFIX + "TOPIC_NETWORK")
        put(None, "generation_interval_ms", _ENV_PREFIX + "INTERVAL_MS", int)
        put(None, "parallel_batches", _ENV_PREFIX + "PARALLEL", _parse_bool)
        put("kafka", "bootstrap_servers", "KAFKA_BOOTSTRAP_SERVERS")

        return cls.from_mapping(data)


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


def load_config(path: str | Path) -> GeneratorConfig:
    """Load a configuration snapshot from a JSON file."""
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Config file {config_path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

    config = GeneratorConfig.from_mapping(data)
    logger.info("Loaded generator configuration from %s", config_path)
    return config
