"""Background latency sampling."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional, Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .history import HistoryStore
from .measurements.manager import MeasurementManager

LOGGER = logging.getLogger(__name__)


class LatencyMonitor:
    """Periodically measures latency to a set of hosts into a HistoryStore.

    The store belongs to the caller; the monitor guards its own writes and
    :meth:`snapshot` reads with ``self.lock``.
    """

    def __init__(
        self,
        measurements: MeasurementManager,
        store: HistoryStore,
        hosts: Sequence[str],
        interval_seconds: int = 60,
        samples: int = 5,
    ) -> None:
        if not hosts:
            raise ValueError("at least one host is required")
        if samples < 1:
            raise ValueError("samples must be at least 1")
        self.measurements = measurements
        self.store = store
        self.hosts: List[str] = list(hosts)
        self.interval_seconds = interval_seconds
        self.samples = samples
        self.lock = threading.Lock()
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self.started = False

    def start(self) -> None:
        if self.started:
            LOGGER.warning("Latency monitor already started, ignoring duplicate start request")
            return
        trigger = IntervalTrigger(seconds=self.interval_seconds)
        self.scheduler.add_job(
            self.run_cycle,
            trigger=trigger,
            id="latency-monitor",
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        self.started = True
        LOGGER.info(
            "Latency monitor started: %d host(s) every %ss", len(self.hosts), self.interval_seconds
        )

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False

    async def _sample_all(self) -> None:
        for host in self.hosts:
            stats = await self.measurements.measure_latency(host, self.samples)
            if stats.received == 0:
                LOGGER.warning("No replies from %s this cycle", host)
                continue
            with self.lock:
                self.store.append(host, stats.avg_ms)

    def run_cycle(self) -> None:
        try:
            asyncio.run(self._sample_all())
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.exception("Latency monitor cycle failed: %s", exc)

    def snapshot(self, host: str) -> List[float]:
        with self.lock:
            return self.store.get(host)

    def trend(self, host: str, window: int = 5) -> float:
        with self.lock:
            return self.store.trend(host, window)

    def latest(self, host: str) -> Optional[float]:
        with self.lock:
            return self.store.latest(host)
