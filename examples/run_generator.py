"""telcogen Example: Run the Telecom Event Generator.

Starts a generator pipeline that publishes call, data-session and
cell-tower events at a fixed rate, then prints the generator metrics and
the cumulative data-quality report on exit.

Sinks:
    kafka   publish to Kafka topics (telco.call.events, telco.session.events,
            telco.network.events); needs a reachable broker
    jsonl   append events to a local JSON Lines file
    memory  keep events in memory (metrics only)

Usage:
    python run_generator.py --sink jsonl --output /tmp/telco_events.jsonl
    python run_generator.py --sink kafka --bootstrap-servers localhost:9092 --rate 2000
    python run_generator.py --config config.json --duration 30 --console-spans

    # Kafka in Docker:
    # docker run -d -p 9092:9092 apache/kafka
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from telcogen.config import GeneratorConfig, load_config
from telcogen.pipeline import (
    create_in_memory_pipeline,
    create_jsonl_pipeline,
    create_kafka_pipeline,
)

logger = logging.getLogger("telcogen.example")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate a stream of synthetic telecom events",
    )
    parser.add_argument(
        "--sink", choices=("kafka", "jsonl", "memory"), default="jsonl",
        help="Where events are published (default: jsonl)",
    )
    parser.add_argument(
        "--output", "-o", default="telco_events.jsonl",
        help="Output file for the jsonl sink (default: telco_events.jsonl)",
    )
    parser.add_argument(
        "--bootstrap-servers",
        help="Kafka bootstrap servers (default: from config / KAFKA_BOOTSTRAP_SERVERS)",
    )
    parser.add_argument(
        "--config", "-c",
        help="JSON config file; TELCOGEN_* environment variables are used otherwise",
    )
    parser.add_argument(
        "--rate", type=int,
        help="Target events per second (default: from config)",
    )
    parser.add_argument(
        "--duration", type=float, default=10.0,
        help="Seconds to run before stopping (default: 10)",
    )
    parser.add_argument(
        "--seed", type=int,
        help="Random seed for reproducible runs",
    )
    parser.add_argument(
        "--console-spans", action="store_true",
        help="Print tick spans to the console",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    config = load_config(args.config) if args.config else GeneratorConfig.from_env()
    options = {"seed": args.seed, "console": args.console_spans}

    if args.sink == "kafka":
        pipeline = create_kafka_pipeline(args.bootstrap_servers, config, **options)
    elif args.sink == "jsonl":
        pipeline = create_jsonl_pipeline(args.output, config, **options)
    else:
        pipeline = create_in_memory_pipeline(config, **options)

    with pipeline:
        if args.rate is not None:
            pipeline.set_rate(args.rate)
        pipeline.start()
        logger.info("Running for %.1f seconds (Ctrl-C to stop early)", args.duration)
        try:
            time.sleep(args.duration)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        pipeline.stop()

        print("\n" + "=" * 70, file=sys.stderr)
        print("  Generator metrics", file=sys.stderr)
        print("=" * 70, file=sys.stderr)
        for key, value in pipeline.metrics().items():
            print(f"  {key:<28s} {value}", file=sys.stderr)

        print("\n  Quality report", file=sys.stderr)
        print("  " + "-" * 50, file=sys.stderr)
        print(json.dumps(pipeline.quality_report().model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    main()
