"""Application bootstrap helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .config import AppConfig, load_config
from .history import HistoryStore
from .logging_setup import configure_logging
from .measurements.manager import MeasurementManager
from .probes import ProbeExecutor
from .scheduler import LatencyMonitor


class ApplicationContext:
    """Holds the wired components for one process.

    The latency monitor is built on first access.
    """

    def __init__(self, config: AppConfig, executor: Optional[ProbeExecutor] = None):
        self.config = config
        configure_logging(config)
        self.measurements = MeasurementManager(config, executor)
        self.history: HistoryStore = HistoryStore(config.monitor.history_size)
        self._monitor: Optional[LatencyMonitor] = None

    @property
    def monitor(self) -> LatencyMonitor:
        if self._monitor is None:
            self._monitor = LatencyMonitor(
                self.measurements,
                self.history,
                hosts=self.config.monitor.hosts,
                interval_seconds=self.config.monitor.interval_seconds,
                samples=self.config.monitor.samples,
            )
        return self._monitor

    def start(self) -> None:
        if self.config.monitor.enabled:
            self.monitor.start()

    def shutdown(self) -> None:
        if self._monitor is not None:
            self._monitor.shutdown()


def bootstrap(config_path: Optional[str] = None, executor: Optional[ProbeExecutor] = None) -> ApplicationContext:
    """Load configuration and wire dependencies."""

    config_file = Path(config_path).resolve() if config_path else None
    config = load_config(str(config_file)) if config_file else load_config()
    return ApplicationContext(config, executor)
