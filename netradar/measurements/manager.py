"""Measurement entry points used by the driver and the monitor."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..config import AppConfig
from ..history import HistoryStore
from ..probes import ProbeExecutor, SystemProbeExecutor
from ..scoring.health import (
    HealthScorer,
    estimate_channel_utilization,
    security_issues,
    security_level_from_tags,
)
from ..scoring.qos import QoSClassifier
from ..scoring.signal import SignalTracker
from .connectivity import ConnectivityChecker
from .dns import DnsChecker
from .latency import LatencyProbe
from .models import (
    ConnectivityStatus,
    DnsReport,
    HealthInputs,
    HealthReport,
    LatencyStatistics,
    NetworkDiagnostics,
    PerformanceSummary,
    QoSMetrics,
    QoSReport,
    SignalPrediction,
    SpeedTestResult,
)
from .speedtest_runner import SpeedTestOrchestrator

LOGGER = logging.getLogger(__name__)

HEALTH_LATENCY_SAMPLES = 5
QOS_LATENCY_SAMPLES = 10
DIAGNOSTICS_LATENCY_SAMPLES = 5


class MeasurementManager:
    def __init__(self, config: AppConfig, executor: Optional[ProbeExecutor] = None):
        self.config = config
        self.executor = executor or SystemProbeExecutor()
        self.latency_probe = LatencyProbe(self.executor, timeout_ms=config.probes.ping_timeout_ms)
        self.speedtest = SpeedTestOrchestrator.from_config(config, self.executor)
        self.connectivity = ConnectivityChecker(self.executor, internet_host=config.speedtest.latency_host)
        self.health_scorer = HealthScorer()
        self.qos_classifier = QoSClassifier()
        self.dns = DnsChecker(
            self.executor,
            domains=config.dns.domains,
            timeout=config.dns.timeout,
            resolv_conf=Path(config.dns.resolv_conf),
        )
        self.signals = SignalTracker(HistoryStore(config.monitor.history_size))

    async def measure_latency(self, host: str, count: int) -> LatencyStatistics:
        return await self.latency_probe.measure(host, count)

    async def run_speed_test(self, size_profile: Optional[str] = None) -> SpeedTestResult:
        return await self.speedtest.run(size_profile or self.config.speedtest.default_size)

    def score_health(self, inputs: HealthInputs) -> HealthReport:
        return self.health_scorer.score_inputs(inputs)

    def classify_qos(self, metrics: QoSMetrics) -> QoSReport:
        return self.qos_classifier.classify(metrics)

    async def check_connectivity(self) -> ConnectivityStatus:
        return await self.connectivity.check()

    async def assess_health(
        self,
        signal_dbm: float,
        neighbor_channels: Sequence[int] = (),
        current_channel: Optional[int] = None,
        security_tags: Optional[Sequence[str]] = None,
        bssid: Optional[str] = None,
    ) -> HealthReport:
        """Probe latency and throughput, then score them with the radio-side inputs.

        With a ``bssid`` the signal reading is also kept for prediction.
        """
        if bssid:
            self.signals.record(bssid, signal_dbm)
        latency = await self.latency_probe.measure(self.config.speedtest.latency_host, HEALTH_LATENCY_SAMPLES)
        download, upload = await self.speedtest.quick_speed_test()
        inputs = HealthInputs(
            signal_dbm=signal_dbm,
            latency=latency,
            download_mbps=download,
            upload_mbps=upload,
            channel_utilization=estimate_channel_utilization(neighbor_channels, current_channel),
            security_level=security_level_from_tags(security_tags),
            security_issues=security_issues(security_tags),
        )
        report = self.score_health(inputs)
        LOGGER.info("WiFi health %s (score %d)", report.overall.value, report.score)
        return report

    async def assess_qos(self) -> QoSReport:
        latency = await self.latency_probe.measure(self.config.speedtest.latency_host, QOS_LATENCY_SAMPLES)
        download, _ = await self.speedtest.quick_speed_test()
        metrics = QoSMetrics(
            latency_ms=latency.avg_ms,
            jitter_ms=latency.jitter_ms,
            packet_loss_percent=latency.loss_percent,
            throughput_mbps=download,
        )
        report = self.classify_qos(metrics)
        LOGGER.info("QoS classification %s", report.classification.value)
        return report

    async def check_dns(self) -> DnsReport:
        return await self.dns.check()

    async def run_diagnostics(self) -> NetworkDiagnostics:
        """Reachability and DNS checks side by side, then a short performance pass.

        The performance pass runs last so its pings and transfers do not
        skew the lookup timings.
        """
        connectivity, dns = await asyncio.gather(self.check_connectivity(), self.check_dns())
        latency = await self.latency_probe.measure(self.config.speedtest.latency_host, DIAGNOSTICS_LATENCY_SAMPLES)
        download, upload = await self.speedtest.quick_speed_test()
        diagnostics = NetworkDiagnostics(
            connectivity=connectivity,
            dns=dns,
            performance=PerformanceSummary(latency=latency, download_mbps=download, upload_mbps=upload),
            captured_at=datetime.utcnow(),
        )
        LOGGER.info(
            "Diagnostics: internet %s, %d/%d domains resolved",
            "up" if connectivity.internet else "down",
            sum(1 for lookup in dns.lookups if lookup.resolved),
            len(dns.lookups),
        )
        return diagnostics

    def record_signal(self, bssid: str, signal_dbm: float) -> None:
        self.signals.record(bssid, signal_dbm)

    def predict_signal(self, bssid: str) -> SignalPrediction:
        return self.signals.predict(bssid)

    @staticmethod
    def to_dict(report: Any) -> Dict[str, Any]:
        return report.to_dict()
