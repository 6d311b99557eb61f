"""Quality-of-service tiers, overall and per application.

Every cascade is checked top-down and the first tier whose limits all
hold wins. A limit of None means the metric is not considered.
"""

from __future__ import annotations

import logging
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

from ..measurements.models import ApplicationQuality, QoSMetrics, QoSReport
from ..measurements.ratings import QoSTier

LOGGER = logging.getLogger(__name__)


class Limits(NamedTuple):
    latency_ms: Optional[float] = None
    jitter_ms: Optional[float] = None
    loss_percent: Optional[float] = None
    throughput_mbps: Optional[float] = None

    def satisfied_by(self, metrics: QoSMetrics) -> bool:
        if self.latency_ms is not None and metrics.latency_ms > self.latency_ms:
            return False
        if self.jitter_ms is not None and metrics.jitter_ms > self.jitter_ms:
            return False
        if self.loss_percent is not None and metrics.packet_loss_percent > self.loss_percent:
            return False
        if self.throughput_mbps is not None and metrics.throughput_mbps < self.throughput_mbps:
            return False
        return True


Cascade = Sequence[Tuple[QoSTier, Limits]]

OVERALL: Cascade = (
    (QoSTier.EXCELLENT, Limits(20, 5, 0.1, 50)),
    (QoSTier.GOOD, Limits(50, 10, 1, 25)),
    (QoSTier.FAIR, Limits(100, 20, 3, 5)),
    (QoSTier.POOR, Limits(200, 50, 5, 1)),
)

VIDEO: Cascade = (
    (QoSTier.EXCELLENT, Limits(latency_ms=50, jitter_ms=10, throughput_mbps=25)),
    (QoSTier.GOOD, Limits(latency_ms=100, jitter_ms=20, throughput_mbps=10)),
    (QoSTier.FAIR, Limits(latency_ms=150, jitter_ms=30, throughput_mbps=5)),
    (QoSTier.POOR, Limits(latency_ms=200, throughput_mbps=2)),
)

VOICE: Cascade = (
    (QoSTier.EXCELLENT, Limits(latency_ms=20, jitter_ms=5, loss_percent=0.1)),
    (QoSTier.GOOD, Limits(latency_ms=50, jitter_ms=10, loss_percent=1)),
    (QoSTier.FAIR, Limits(latency_ms=100, jitter_ms=20, loss_percent=3)),
    (QoSTier.POOR, Limits(latency_ms=150, loss_percent=5)),
)

GAMING: Cascade = (
    (QoSTier.EXCELLENT, Limits(latency_ms=20, jitter_ms=5, loss_percent=0.1)),
    (QoSTier.GOOD, Limits(latency_ms=40, jitter_ms=10, loss_percent=0.5)),
    (QoSTier.FAIR, Limits(latency_ms=80, jitter_ms=15, loss_percent=1)),
    (QoSTier.POOR, Limits(latency_ms=120, loss_percent=2)),
)

BROWSING: Cascade = (
    (QoSTier.EXCELLENT, Limits(throughput_mbps=25)),
    (QoSTier.GOOD, Limits(throughput_mbps=10)),
    (QoSTier.FAIR, Limits(throughput_mbps=5)),
    (QoSTier.POOR, Limits(throughput_mbps=1)),
)

APPLICATION_CASCADES: Dict[str, Cascade] = {
    "video": VIDEO,
    "voice": VOICE,
    "gaming": GAMING,
    "browsing": BROWSING,
}


def evaluate(cascade: Cascade, metrics: QoSMetrics) -> QoSTier:
    for tier, limits in cascade:
        if limits.satisfied_by(metrics):
            return tier
    return QoSTier.UNUSABLE


class QoSClassifier:
    def classify(self, metrics: QoSMetrics) -> QoSReport:
        per_application = ApplicationQuality(
            **{name: evaluate(cascade, metrics) for name, cascade in APPLICATION_CASCADES.items()}
        )
        classification = evaluate(OVERALL, metrics)
        LOGGER.debug("QoS %s for %s", classification.value, metrics)
        return QoSReport(classification=classification, metrics=metrics, per_application=per_application)
