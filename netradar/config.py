"""Configuration loading helpers for the network measurement core."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import tempfile
import yaml


def _default_servers() -> List[Dict[str, str]]:
    return [
        {
            "name": "Hetzner",
            "location": "Germany",
            "download": "https://speed.hetzner.de/100MB.bin",
            "download_small": "https://speed.hetzner.de/10MB.bin",
            "download_large": "https://speed.hetzner.de/1GB.bin",
            "upload": "https://speed.hetzner.de/",
        },
        {
            "name": "Tele2",
            "location": "Sweden",
            "download": "http://speedtest.tele2.net/100MB.zip",
            "download_small": "http://speedtest.tele2.net/10MB.zip",
            "download_large": "http://speedtest.tele2.net/1GB.zip",
            "upload": "http://speedtest.tele2.net/",
        },
        {
            "name": "OVH",
            "location": "France",
            "download": "https://proof.ovh.net/files/100Mb.dat",
            "download_small": "https://proof.ovh.net/files/10Mb.dat",
            "download_large": "https://proof.ovh.net/files/1Gb.dat",
            "upload": "https://proof.ovh.net/",
        },
        {
            "name": "IBM Cloud",
            "location": "Washington DC",
            "download": "http://speedtest.wdc01.softlayer.com/downloads/test100.zip",
            "download_small": "http://speedtest.wdc01.softlayer.com/downloads/test10.zip",
            "download_large": "http://speedtest.wdc01.softlayer.com/downloads/test1000.zip",
            "upload": "http://speedtest.wdc01.softlayer.com/",
        },
        {
            "name": "Linode Tokyo",
            "location": "Tokyo",
            "download": "http://speedtest.tokyo.linode.com/100MB-tokyo.bin",
            "download_small": "http://speedtest.tokyo.linode.com/10MB-tokyo.bin",
            "download_large": "http://speedtest.tokyo.linode.com/1000MB-tokyo.bin",
            "upload": "http://speedtest.tokyo.linode.com/",
        },
    ]


def _default_upload_targets() -> List[Dict[str, Any]]:
    return [
        {"name": "httpbin", "url": "https://httpbin.org/post", "method": "POST", "multipart": True},
        {"name": "file.io", "url": "https://file.io/", "method": "PUT", "multipart": False},
        {"name": "transfer.sh", "url": "https://transfer.sh/speedtest", "method": "PUT", "multipart": False},
    ]


@dataclass
class PathsConfig:
    logs_dir: Path
    scratch_dir: Path


@dataclass
class SpeedtestConfig:
    servers: List[Dict[str, str]] = field(default_factory=_default_servers)
    upload_targets: List[Dict[str, Any]] = field(default_factory=_default_upload_targets)
    candidate_limit: int = 3
    latency_host: str = "8.8.8.8"
    latency_samples: int = 10
    default_size: str = "medium"
    quick_server_index: int = 1


@dataclass
class ProbesConfig:
    ping_timeout_ms: int = 1000
    server_probe_timeout: float = 5.0
    fallback_timeout: float = 60.0
    upload_timeout: float = 120.0
    identity_timeout: float = 10.0
    transfer_timeouts: Dict[str, float] = field(
        default_factory=lambda: {"small": 30.0, "medium": 120.0, "large": 120.0}
    )


@dataclass
class IdentityConfig:
    public_ip_urls: List[str] = field(
        default_factory=lambda: ["https://api.ipify.org", "https://icanhazip.com"]
    )
    isp_url: str = "https://ipapi.co/json"


@dataclass
class DnsConfig:
    domains: List[str] = field(default_factory=lambda: ["google.com", "cloudflare.com", "github.com"])
    timeout: float = 5.0
    resolv_conf: str = "/etc/resolv.conf"


@dataclass
class MonitorConfig:
    enabled: bool = False
    interval_seconds: int = 60
    hosts: List[str] = field(default_factory=lambda: ["8.8.8.8", "1.1.1.1"])
    samples: int = 5
    history_size: int = 100


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file_name: str = "netradar.log"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5


@dataclass
class AppConfig:
    root_dir: Path
    paths: PathsConfig
    speedtest: SpeedtestConfig
    probes: ProbesConfig
    identity: IdentityConfig
    dns: DnsConfig
    monitor: MonitorConfig
    logging: LoggingConfig

    @classmethod
    def default(cls, root_dir: Optional[Path] = None) -> "AppConfig":
        """Build a config from defaults only; nothing is created on disk."""
        root = root_dir or Path.cwd()
        return cls(
            root_dir=root,
            paths=PathsConfig(logs_dir=root / "logs", scratch_dir=Path(tempfile.gettempdir())),
            speedtest=SpeedtestConfig(),
            probes=ProbesConfig(),
            identity=IdentityConfig(),
            dns=DnsConfig(),
            monitor=MonitorConfig(),
            logging=LoggingConfig(),
        )


def _as_path(base: Path, maybe_path: Optional[str]) -> Path:
    if not maybe_path:
        raise ValueError("Path configuration entries cannot be empty")
    path = (base / maybe_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load application configuration from YAML file."""

    root_dir = Path(path).resolve().parent if path else Path.cwd()
    source_path = Path(path) if path else root_dir / "config.yaml"
    if not source_path.exists():
        raise FileNotFoundError(f"Missing configuration file at {source_path}")

    with source_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    paths_data = data.get("paths", {})
    scratch = paths_data.get("scratch_dir")
    paths = PathsConfig(
        logs_dir=_as_path(root_dir, paths_data.get("logs_dir", "logs")),
        scratch_dir=_as_path(root_dir, scratch) if scratch else Path(tempfile.gettempdir()),
    )

    config = AppConfig(
        root_dir=root_dir,
        paths=paths,
        speedtest=SpeedtestConfig(**data.get("speedtest", {})),
        probes=ProbesConfig(**data.get("probes", {})),
        identity=IdentityConfig(**data.get("identity", {})),
        dns=DnsConfig(**data.get("dns", {})),
        monitor=MonitorConfig(**data.get("monitor", {})),
        logging=LoggingConfig(**data.get("logging", {})),
    )

    return config
