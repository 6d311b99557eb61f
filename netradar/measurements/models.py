"""Shared dataclasses for measurements and reports."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .ratings import (
    CongestionLevel,
    HealthRating,
    QoSTier,
    Quality,
    SecurityLevel,
    Stability,
)

MEBIBIT = 1024 * 1024


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class LatencyStatistics(_Serializable):
    host: str
    min_ms: float
    max_ms: float
    avg_ms: float
    jitter_ms: float
    loss_percent: float
    samples: Tuple[float, ...]
    captured_at: datetime

    @classmethod
    def total_loss(cls, host: str, captured_at: Optional[datetime] = None) -> "LatencyStatistics":
        return cls(
            host=host,
            min_ms=0.0,
            max_ms=0.0,
            avg_ms=0.0,
            jitter_ms=0.0,
            loss_percent=100.0,
            samples=(),
            captured_at=captured_at or datetime.utcnow(),
        )

    @property
    def received(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class TransferResult(_Serializable):
    speed_mbps: float
    bytes_transferred: int
    elapsed_seconds: float
    method: str
    endpoint_id: str

    @classmethod
    def from_transfer(
        cls, bytes_transferred: int, elapsed_seconds: float, method: str, endpoint_id: str
    ) -> "TransferResult":
        """Build a result from raw counters; non-positive elapsed time yields the sentinel."""
        if elapsed_seconds <= 0:
            return cls.failed(method, endpoint_id)
        speed = (bytes_transferred * 8) / (elapsed_seconds * MEBIBIT)
        return cls(
            speed_mbps=round(speed, 2),
            bytes_transferred=int(bytes_transferred),
            elapsed_seconds=elapsed_seconds,
            method=method,
            endpoint_id=endpoint_id,
        )

    @classmethod
    def failed(cls, method: str = "none", endpoint_id: str = "") -> "TransferResult":
        return cls(
            speed_mbps=0.0,
            bytes_transferred=0,
            elapsed_seconds=0.0,
            method=method,
            endpoint_id=endpoint_id,
        )

    @property
    def succeeded(self) -> bool:
        return self.speed_mbps > 0


@dataclass(frozen=True)
class Endpoint(_Serializable):
    name: str
    location: str
    download_url: str
    upload_url: str = ""
    download_small_url: str = ""
    download_large_url: str = ""

    @classmethod
    def from_config(cls, entry: Dict[str, str]) -> "Endpoint":
        return cls(
            name=entry["name"],
            location=entry.get("location", "Unknown"),
            download_url=entry["download"],
            upload_url=entry.get("upload", ""),
            download_small_url=entry.get("download_small", ""),
            download_large_url=entry.get("download_large", ""),
        )


@dataclass(frozen=True)
class UploadTarget(_Serializable):
    name: str
    url: str
    method: str = "PUT"
    multipart: bool = False

    @classmethod
    def from_config(cls, entry: Dict[str, Any]) -> "UploadTarget":
        return cls(
            name=entry["name"],
            url=entry["url"],
            method=str(entry.get("method", "PUT")).upper(),
            multipart=bool(entry.get("multipart", False)),
        )


@dataclass(frozen=True)
class LatencySummary(_Serializable):
    latency_ms: float
    jitter_ms: float
    packet_loss_percent: float

    @classmethod
    def from_statistics(cls, stats: LatencyStatistics) -> "LatencySummary":
        return cls(
            latency_ms=stats.avg_ms,
            jitter_ms=stats.jitter_ms,
            packet_loss_percent=stats.loss_percent,
        )


@dataclass(frozen=True)
class ServerInfo(_Serializable):
    name: str
    location: str


@dataclass(frozen=True)
class SpeedTestResult(_Serializable):
    download: TransferResult
    upload: TransferResult
    latency: LatencySummary
    server: ServerInfo
    captured_at: datetime
    public_ip: str
    isp: str


@dataclass(frozen=True)
class HealthFactors(_Serializable):
    signal_dbm: float
    signal_quality: Quality
    stability: Stability
    download_mbps: float
    upload_mbps: float
    speed_rating: Quality
    latency_ms: float
    jitter_ms: float
    latency_rating: Quality
    congestion_level: CongestionLevel
    channel_utilization: float
    security_level: SecurityLevel
    security_issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HealthReport(_Serializable):
    overall: HealthRating
    score: int
    factors: HealthFactors
    recommendations: Tuple[str, ...]


@dataclass(frozen=True)
class QoSMetrics(_Serializable):
    latency_ms: float
    jitter_ms: float
    packet_loss_percent: float
    throughput_mbps: float


@dataclass(frozen=True)
class ApplicationQuality(_Serializable):
    video: QoSTier
    voice: QoSTier
    gaming: QoSTier
    browsing: QoSTier


@dataclass(frozen=True)
class QoSReport(_Serializable):
    classification: QoSTier
    metrics: QoSMetrics
    per_application: ApplicationQuality


@dataclass(frozen=True)
class ConnectivityStatus(_Serializable):
    internet: bool
    dns: bool
    gateway: bool
    gateway_ip: Optional[str] = None


@dataclass
class HealthInputs:
    """Raw inputs to the health scorer, as gathered by the caller."""

    signal_dbm: float
    latency: LatencyStatistics
    download_mbps: float
    upload_mbps: float
    channel_utilization: float
    security_level: SecurityLevel
    security_issues: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DnsLookup(_Serializable):
    domain: str
    resolved: bool
    time_ms: float
    ip: Optional[str] = None


@dataclass(frozen=True)
class DnsReport(_Serializable):
    servers: Tuple[str, ...]
    lookups: Tuple[DnsLookup, ...]


@dataclass(frozen=True)
class PerformanceSummary(_Serializable):
    latency: LatencyStatistics
    download_mbps: float
    upload_mbps: float


@dataclass(frozen=True)
class NetworkDiagnostics(_Serializable):
    connectivity: ConnectivityStatus
    dns: DnsReport
    performance: PerformanceSummary
    captured_at: datetime


@dataclass(frozen=True)
class SignalPrediction(_Serializable):
    bssid: str
    next_hour_dbm: int
    confidence: float
    factors: Tuple[str, ...] = ()
