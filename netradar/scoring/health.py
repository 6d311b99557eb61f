"""Weighted WiFi health scoring.

Each factor is banded and awarded points; the points add up to a 0-100
score that maps onto the overall rating.

    Factor      Weight  Bands
    signal      30      >= -30 dBm: 30, >= -50: 22, >= -70: 15, else 5
    speed       25      >= 100 Mbps: 25, >= 25: 20, >= 5: 12, else 3
    latency     20      <= 20 ms: 20, <= 50: 15, <= 100: 8, else 2
    congestion  15      <= 30 %: 15, <= 60 %: 10, else 3
    security    10      secure: 10, warning: 5, vulnerable: 0

    A latency sample with no replies at all scores 2 and rates poor,
    whatever its (zero) average says.

    Overall: >= 85 excellent, >= 70 good, >= 50 fair, >= 30 poor, else critical.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..measurements.models import HealthFactors, HealthInputs, HealthReport, LatencyStatistics
from ..measurements.ratings import CongestionLevel, HealthRating, Quality, SecurityLevel, Stability

LOGGER = logging.getLogger(__name__)

SIGNAL_POINTS = {Quality.EXCELLENT: 30, Quality.GOOD: 22, Quality.FAIR: 15, Quality.POOR: 5}
SPEED_POINTS = {Quality.EXCELLENT: 25, Quality.GOOD: 20, Quality.FAIR: 12, Quality.POOR: 3}
LATENCY_POINTS = {Quality.EXCELLENT: 20, Quality.GOOD: 15, Quality.FAIR: 8, Quality.POOR: 2}
SECURITY_POINTS = {SecurityLevel.SECURE: 10, SecurityLevel.WARNING: 5, SecurityLevel.VULNERABLE: 0}

UNSTABLE_JITTER_MS = 10.0

REC_MOVE_CLOSER = "Move closer to the router or consider a WiFi extender"
REC_HIGH_LATENCY = "High latency detected - check for network congestion"
REC_NO_REPLIES = "No replies to latency probes - check the connection"
REC_HIGH_JITTER = "High jitter detected - may affect video calls and gaming"
REC_CONGESTION = "Switch to 5GHz band or less congested channel"
REC_SECURITY = "Use WPA2 or WPA3 security for better protection"
REC_UPGRADE = "Consider upgrading your internet plan or router"


def signal_quality(signal_dbm: float) -> Quality:
    if signal_dbm >= -30:
        return Quality.EXCELLENT
    if signal_dbm >= -50:
        return Quality.GOOD
    if signal_dbm >= -70:
        return Quality.FAIR
    return Quality.POOR


def speed_rating(download_mbps: float) -> Quality:
    if download_mbps >= 100:
        return Quality.EXCELLENT
    if download_mbps >= 25:
        return Quality.GOOD
    if download_mbps >= 5:
        return Quality.FAIR
    return Quality.POOR


def latency_rating(latency_ms: float) -> Quality:
    if latency_ms <= 20:
        return Quality.EXCELLENT
    if latency_ms <= 50:
        return Quality.GOOD
    if latency_ms <= 100:
        return Quality.FAIR
    return Quality.POOR


def congestion_points(channel_utilization: float) -> int:
    if channel_utilization <= 30:
        return 15
    if channel_utilization <= 60:
        return 10
    return 3


def congestion_level(channel_utilization: float) -> CongestionLevel:
    if channel_utilization > 70:
        return CongestionLevel.HIGH
    if channel_utilization > 40:
        return CongestionLevel.MEDIUM
    return CongestionLevel.LOW


def overall_rating(score: int) -> HealthRating:
    if score >= 85:
        return HealthRating.EXCELLENT
    if score >= 70:
        return HealthRating.GOOD
    if score >= 50:
        return HealthRating.FAIR
    if score >= 30:
        return HealthRating.POOR
    return HealthRating.CRITICAL


def estimate_channel_utilization(channels: Iterable[int], current_channel: Optional[int]) -> float:
    """Rough utilisation from neighbouring networks.

    30 points per network on the same channel, 10 per network within two
    channels, capped at 100. Zero when the current channel is unknown.
    """
    if not current_channel:
        return 0.0
    channels = list(channels)
    same = sum(1 for channel in channels if channel == current_channel)
    nearby = sum(1 for channel in channels if channel != current_channel and abs(channel - current_channel) <= 2)
    return float(min(100, same * 30 + nearby * 10))


def _joined(tags: Optional[Sequence[str]]) -> Optional[str]:
    if not tags:
        return None
    return " ".join(tags).lower()


def security_level_from_tags(tags: Optional[Sequence[str]]) -> SecurityLevel:
    security = _joined(tags)
    if security is None:
        return SecurityLevel.VULNERABLE
    if "wpa3" in security or "wpa2" in security:
        return SecurityLevel.SECURE
    if "wpa" in security:
        return SecurityLevel.WARNING
    if "wep" in security or "open" in security:
        return SecurityLevel.VULNERABLE
    return SecurityLevel.WARNING


def security_issues(tags: Optional[Sequence[str]]) -> List[str]:
    security = _joined(tags)
    if security is None:
        return ["No security information available"]
    issues = []
    if "open" in security:
        issues.append("Network is open - no encryption")
    if "wep" in security:
        issues.append("WEP encryption is vulnerable")
    if "wpa" in security and "wpa2" not in security and "wpa3" not in security:
        issues.append("Old WPA encryption has vulnerabilities")
    return issues


class HealthScorer:
    """Pure scoring of already-measured inputs; no probing happens here."""

    def score(
        self,
        signal_dbm: float,
        latency: LatencyStatistics,
        download_mbps: float,
        upload_mbps: float,
        channel_utilization: float,
        security_level: SecurityLevel,
        issues: Sequence[str] = (),
    ) -> HealthReport:
        security_level = SecurityLevel(security_level)
        signal = signal_quality(signal_dbm)
        speed = speed_rating(download_mbps)
        # nothing came back, so the average of zero says nothing about latency
        unreachable = latency.received == 0
        latency_band = Quality.POOR if unreachable else latency_rating(latency.avg_ms)

        score = (
            SIGNAL_POINTS[signal]
            + SPEED_POINTS[speed]
            + LATENCY_POINTS[latency_band]
            + congestion_points(channel_utilization)
            + SECURITY_POINTS[security_level]
        )
        overall = overall_rating(score)

        factors = HealthFactors(
            signal_dbm=signal_dbm,
            signal_quality=signal,
            stability=Stability.STABLE if latency.jitter_ms < UNSTABLE_JITTER_MS else Stability.UNSTABLE,
            download_mbps=download_mbps,
            upload_mbps=upload_mbps,
            speed_rating=speed,
            latency_ms=latency.avg_ms,
            jitter_ms=latency.jitter_ms,
            latency_rating=latency_band,
            congestion_level=congestion_level(channel_utilization),
            channel_utilization=channel_utilization,
            security_level=security_level,
            security_issues=tuple(issues),
        )
        recommendations = self.recommendations(overall, factors, unreachable)
        LOGGER.debug("Health score %d -> %s", score, overall.value)
        return HealthReport(overall=overall, score=score, factors=factors, recommendations=recommendations)

    def score_inputs(self, inputs: HealthInputs) -> HealthReport:
        return self.score(
            inputs.signal_dbm,
            inputs.latency,
            inputs.download_mbps,
            inputs.upload_mbps,
            inputs.channel_utilization,
            inputs.security_level,
            inputs.security_issues,
        )

    @staticmethod
    def recommendations(overall: HealthRating, factors: HealthFactors, unreachable: bool = False) -> tuple:
        advice: List[str] = []
        if factors.signal_dbm < -70:
            advice.append(REC_MOVE_CLOSER)
        if unreachable:
            advice.append(REC_NO_REPLIES)
        elif factors.latency_ms > 100:
            advice.append(REC_HIGH_LATENCY)
        if factors.jitter_ms > 20:
            advice.append(REC_HIGH_JITTER)
        if factors.channel_utilization > 70:
            advice.append(REC_CONGESTION)
        if factors.security_level is not SecurityLevel.SECURE:
            advice.append(REC_SECURITY)
        if overall in (HealthRating.POOR, HealthRating.CRITICAL):
            advice.append(REC_UPGRADE)
        return tuple(dict.fromkeys(advice))
