"""telcogen Generation Scheduler.

Runs :meth:`EventGenerator.generate_batch` on a background thread once per
interval while enabled, and exposes the control surface of a running
generator: start, stop, set-rate, status and metrics.

Usage::

    scheduler = GenerationScheduler(generator, interval_seconds=1.0, rate=1000)
    scheduler.start()
    scheduler.set_rate(2500)
    print(scheduler.status(), scheduler.metrics())
    scheduler.stop()
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from telcogen.generators.events import BatchSummary, EventGenerator

logger = logging.getLogger(__name__)

DEFAULT_RATE_BOUNDS = (100, 10000)


@dataclass(frozen=True)
class GeneratorStatus:
    enabled: bool
    rate: int
    message: str


class GenerationScheduler:
    """Periodic driver for an :class:`EventGenerator`.

    Ticks never overlap: each one runs to completion on the scheduler
    thread before the next interval starts. Stopping sets a flag and joins
    the thread, so a tick already in progress finishes first.

    Args:
        generator: The generator to drive.
        interval_seconds: Wait between the end of one tick and the start
            of the next.
        rate: Initial target rate in events per second.
        rate_bounds: Inclusive ``(min, max)`` accepted by :meth:`set_rate`.
    """

    def __init__(
        self,
        generator: EventGenerator,
        interval_seconds: float = 1.0,
        rate: int = 1000,
        rate_bounds: tuple[int, int] = DEFAULT_RATE_BOUNDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._generator = generator
        self._interval = interval_seconds
        self._rate_bounds = rate_bounds
        self._check_rate(rate)
        self._rate = rate

        self._lock = threading.Lock()
        self._tick_lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._tick_ms_total = 0.0
        self._last_summary: BatchSummary | None = None

    # ── Control ───────────────────────────────────────────────────────

    def start(self) -> None:
        """Enable generation; a no-op when already running."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._shutdown_event.clear()
            self._thread = threading.Thread(
                target=self._run_loop, daemon=True, name="telcogen-scheduler",
            )
            self._thread.start()
        logger.info(
            "Event generation started at %d events/sec (interval %.3fs)",
            self.rate, self._interval,
        )

    def stop(self, timeout: float | None = 10.0) -> None:
        """Disable generation and wait for the in-flight tick to finish."""
        with self._lock:
            thread = self._thread
            self._thread = None
        self._shutdown_event.set()
        if thread is None:
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Scheduler thread did not stop within %s seconds", timeout)
        else:
            logger.info("Event generation stopped after %d tick(s)", self.tick_count)

    def set_rate(self, rate: int) -> None:
        """Change the target rate; takes effect on the next tick.

        Raises:
            ValueError: if *rate* is outside the configured bounds.
        """
        self._check_rate(rate)
        with self._lock:
            previous, self._rate = self._rate, rate
        logger.info("Generation rate changed from %d to %d events/sec", previous, rate)

    def _check_rate(self, rate: int) -> None:
        low, high = self._rate_bounds
        if not low <= rate <= high:
            raise ValueError(f"Rate must be between {low} and {high}, got {rate}")

    # ── Introspection ─────────────────────────────────────────────────

    @property
    def rate(self) -> int:
        with self._lock:
            return self._rate

    @property
    def enabled(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        with self._lock:
            return self._tick_count

    @property
    def last_summary(self) -> BatchSummary | None:
        with self._lock:
            return self._last_summary

    def status(self) -> GeneratorStatus:
        enabled = self.enabled
        rate = self.rate
        if enabled:
            message = f"Generating events at {rate} events/sec"
        else:
            message = "Event generation is stopped"
        return GeneratorStatus(enabled=enabled, rate=rate, message=message)

    def metrics(self) -> dict[str, Any]:
        """Generator counters plus scheduler and quality figures."""
        data = self._generator.stats()
        with self._lock:
            ticks = self._tick_count
            data.update({
                "enabled": self._thread is not None and self._thread.is_alive(),
                "rate": self._rate,
                "scheduler_ticks": ticks,
                "average_tick_ms": self._tick_ms_total / ticks if ticks else 0.0,
            })
        validator = self._generator.validator
        if validator is not None:
            data["average_quality_score"] = validator.aggregate.average_score
        return data

    # ── Ticking ───────────────────────────────────────────────────────

    def run_once(self) -> BatchSummary:
        """Run one tick synchronously on the calling thread."""
        with self._tick_lock:
            summary = self._generator.generate_batch(self.rate)
        with self._lock:
            self._tick_count += 1
            self._tick_ms_total += summary.duration_ms
            self._last_summary = summary
        return summary

    def _run_loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Generation tick failed")
            self._shutdown_event.wait(timeout=self._interval)
