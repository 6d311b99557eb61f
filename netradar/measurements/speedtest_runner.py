"""Speed test orchestration (server pick, download, upload, latency)."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..config import AppConfig
from ..probes import ProbeExecutor, TransferRequest, decode_body
from .errors import ParseFailure
from .latency import LatencyProbe
from .models import (
    Endpoint,
    LatencySummary,
    ServerInfo,
    SpeedTestResult,
    TransferResult,
    UploadTarget,
)
from .ratings import SizeProfile
from .servers import ServerSelector
from .transfer import TransferBenchmark, download_url_for

LOGGER = logging.getLogger(__name__)

UNKNOWN_IP = "unknown"
UNKNOWN_ISP = "Unknown ISP"


class IdentityResolver:
    """Best-effort public IP and ISP lookup over plain HTTP GETs."""

    def __init__(
        self,
        executor: ProbeExecutor,
        public_ip_urls: Sequence[str] = ("https://api.ipify.org", "https://icanhazip.com"),
        isp_url: str = "https://ipapi.co/json",
        timeout: float = 10.0,
    ):
        self.executor = executor
        self.public_ip_urls = list(public_ip_urls)
        self.isp_url = isp_url
        self.timeout = timeout

    async def _fetch_text(self, url: str) -> Optional[str]:
        result = await self.executor.transfer(
            TransferRequest(url=url, method="GET", timeout=self.timeout, capture_body=True)
        )
        if not result.ok or not result.value.status_ok:
            LOGGER.debug("Lookup %s failed: %s", url, result.error or result.value.http_status)
            return None
        try:
            return decode_body(result.value)
        except ParseFailure as exc:
            LOGGER.debug("Lookup %s returned unreadable body: %s", url, exc)
            return None

    async def public_ip(self) -> str:
        for url in self.public_ip_urls:
            text = await self._fetch_text(url)
            if text:
                return text
        return UNKNOWN_IP

    async def isp(self) -> str:
        text = await self._fetch_text(self.isp_url)
        if not text:
            return UNKNOWN_ISP
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            LOGGER.debug("ISP lookup returned non-JSON payload")
            return UNKNOWN_ISP
        if not isinstance(data, dict):
            return UNKNOWN_ISP
        return data.get("org") or UNKNOWN_ISP


class SpeedTestOrchestrator:
    """Runs one complete speed test.

    Steps run one after another: identity lookup, server selection,
    download, upload, latency. Download and upload share the local link,
    so running them together would skew both. Every step degrades to its
    own sentinel; the result is always complete.
    """

    def __init__(
        self,
        servers: Sequence[Endpoint],
        selector: ServerSelector,
        benchmark: TransferBenchmark,
        latency_probe: LatencyProbe,
        identity: IdentityResolver,
        latency_host: str = "8.8.8.8",
        latency_samples: int = 10,
        quick_server_index: int = 1,
    ):
        if not servers:
            raise ValueError("at least one speed test server must be configured")
        self.servers: List[Endpoint] = list(servers)
        # fail at construction, not halfway through a run
        for server in self.servers:
            for profile in SizeProfile:
                download_url_for(server, profile)
        self.selector = selector
        self.benchmark = benchmark
        self.latency_probe = latency_probe
        self.identity = identity
        self.latency_host = latency_host
        self.latency_samples = latency_samples
        self.quick_server_index = quick_server_index

    @classmethod
    def from_config(cls, config: AppConfig, executor: ProbeExecutor) -> "SpeedTestOrchestrator":
        probes = config.probes
        return cls(
            servers=[Endpoint.from_config(entry) for entry in config.speedtest.servers],
            selector=ServerSelector(
                executor,
                candidate_limit=config.speedtest.candidate_limit,
                timeout=probes.server_probe_timeout,
            ),
            benchmark=TransferBenchmark(
                executor,
                upload_targets=[UploadTarget.from_config(entry) for entry in config.speedtest.upload_targets],
                scratch_dir=config.paths.scratch_dir,
                transfer_timeouts=probes.transfer_timeouts,
                fallback_timeout=probes.fallback_timeout,
                upload_timeout=probes.upload_timeout,
            ),
            latency_probe=LatencyProbe(executor, timeout_ms=probes.ping_timeout_ms),
            identity=IdentityResolver(
                executor,
                public_ip_urls=config.identity.public_ip_urls,
                isp_url=config.identity.isp_url,
                timeout=probes.identity_timeout,
            ),
            latency_host=config.speedtest.latency_host,
            latency_samples=config.speedtest.latency_samples,
            quick_server_index=config.speedtest.quick_server_index,
        )

    async def run(self, size_profile="medium") -> SpeedTestResult:
        profile = SizeProfile.parse(size_profile)
        LOGGER.info("Running %s speed test", profile.value)

        public_ip = await self.identity.public_ip()
        isp = await self.identity.isp()

        server = await self.selector.select_best(self.servers)
        download = await self.benchmark.benchmark_download(profile, server)
        upload = await self.benchmark.benchmark_upload(profile)
        latency = await self.latency_probe.measure(self.latency_host, self.latency_samples)

        result = SpeedTestResult(
            download=download,
            upload=upload,
            latency=LatencySummary.from_statistics(latency),
            server=ServerInfo(name=server.name, location=server.location),
            captured_at=datetime.utcnow(),
            public_ip=public_ip,
            isp=isp,
        )
        LOGGER.info(
            "Speed test via %s: down %.2f Mbps / up %.2f Mbps / ping %.2f ms (loss %.1f%%)",
            server.name,
            download.speed_mbps,
            upload.speed_mbps,
            latency.avg_ms,
            latency.loss_percent,
        )
        return result

    def quick_server(self) -> Endpoint:
        if 0 <= self.quick_server_index < len(self.servers):
            return self.servers[self.quick_server_index]
        return self.servers[0]

    async def quick_speed_test(self) -> Tuple[float, float]:
        """Small-profile download and upload against a fixed server, no selection."""
        server = self.quick_server()
        download = await self.benchmark.benchmark_download(SizeProfile.SMALL, server)
        if not download.succeeded and server is not self.servers[0]:
            LOGGER.warning("Quick test against %s failed, retrying with %s", server.name, self.servers[0].name)
            download = await self.benchmark.benchmark_download(SizeProfile.SMALL, self.servers[0])
        upload: TransferResult = await self.benchmark.benchmark_upload(SizeProfile.SMALL)
        return download.speed_mbps, upload.speed_mbps
