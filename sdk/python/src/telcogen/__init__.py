"""telcogen - Telecom Event Generator.

Produces a continuous, rate-controlled stream of synthetic but internally
consistent telecom events (voice calls, data sessions and cell-tower network
metrics), scores each one for data quality, and hands them to a publish
sink such as Kafka.
"""

__version__ = "1.0.0"

from telcogen.config import GeneratorConfig, load_config
from telcogen.generators import EventGenerator, SyntheticDataFactory
from telcogen.pipeline import (
    GeneratorPipeline,
    create_in_memory_pipeline,
    create_jsonl_pipeline,
    create_kafka_pipeline,
)
from telcogen.processors import QualityValidator
from telcogen.registry import SessionRegistry
from telcogen.scheduler import GenerationScheduler

__all__ = [
    "EventGenerator",
    "GenerationScheduler",
    "GeneratorConfig",
    "GeneratorPipeline",
    "QualityValidator",
    "SessionRegistry",
    "SyntheticDataFactory",
    "create_in_memory_pipeline",
    "create_jsonl_pipeline",
    "create_kafka_pipeline",
    "load_config",
    "__version__",
]
