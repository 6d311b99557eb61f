"""Tests for the QoS tier cascades."""

import pytest

from netradar.measurements.models import QoSMetrics
from netradar.measurements.ratings import QoSTier
from netradar.scoring.qos import BROWSING, GAMING, OVERALL, VOICE, Limits, QoSClassifier, evaluate


def metrics(latency=15.0, jitter=3.0, loss=0.05, throughput=60.0):
    return QoSMetrics(latency_ms=latency, jitter_ms=jitter, packet_loss_percent=loss, throughput_mbps=throughput)


class TestLimits:
    def test_none_limits_are_ignored(self):
        assert Limits().satisfied_by(metrics(latency=5000, jitter=900, loss=100, throughput=0))

    def test_bounds_are_inclusive(self):
        assert Limits(20, 5, 0.1, 50).satisfied_by(metrics(latency=20, jitter=5, loss=0.1, throughput=50))


class TestQoSClassifier:
    def test_excellent_everywhere(self):
        report = QoSClassifier().classify(metrics())

        assert report.classification is QoSTier.EXCELLENT
        per_app = report.per_application
        assert (per_app.video, per_app.voice, per_app.gaming, per_app.browsing) == (QoSTier.EXCELLENT,) * 4

    def test_dead_link_is_unusable(self):
        report = QoSClassifier().classify(metrics(latency=0, jitter=0, loss=100, throughput=0))

        assert report.classification is QoSTier.UNUSABLE
        per_app = report.per_application
        assert (per_app.video, per_app.voice, per_app.gaming, per_app.browsing) == (QoSTier.UNUSABLE,) * 4

    @pytest.mark.parametrize(
        "sample, tier",
        [
            (metrics(latency=45, jitter=8, loss=0.5, throughput=30), QoSTier.GOOD),
            (metrics(latency=90, jitter=15, loss=2, throughput=6), QoSTier.FAIR),
            (metrics(latency=180, jitter=40, loss=4, throughput=2), QoSTier.POOR),
            (metrics(latency=250, jitter=3, loss=0, throughput=100), QoSTier.UNUSABLE),
        ],
    )
    def test_overall_cascade(self, sample, tier):
        assert evaluate(OVERALL, sample) is tier

    def test_one_bad_metric_drops_the_tier(self):
        # everything excellent except throughput
        assert evaluate(OVERALL, metrics(throughput=30)) is QoSTier.GOOD

    def test_applications_weigh_different_metrics(self):
        sample = metrics(latency=60, jitter=12, loss=0.8, throughput=30)

        assert evaluate(VOICE, sample) is QoSTier.FAIR
        assert evaluate(GAMING, sample) is QoSTier.FAIR
        assert evaluate(BROWSING, sample) is QoSTier.EXCELLENT

    def test_gaming_is_stricter_than_voice(self):
        sample = metrics(latency=130, jitter=3, loss=1.5, throughput=60)

        assert evaluate(VOICE, sample) is QoSTier.POOR
        assert evaluate(GAMING, sample) is QoSTier.UNUSABLE

    def test_report_to_dict(self):
        payload = QoSClassifier().classify(metrics()).to_dict()

        assert payload["classification"] == "excellent"
        assert payload["per_application"]["gaming"] == "excellent"
        assert payload["metrics"]["throughput_mbps"] == 60.0
