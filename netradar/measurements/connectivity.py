"""Reachability checks for the internet, DNS resolver and default gateway."""

from __future__ import annotations

import asyncio
import logging
import platform
import re
from typing import List, Optional

from ..probes import ProbeExecutor
from .latency import build_ping_command, parse_ping_latency_ms
from .models import ConnectivityStatus

LOGGER = logging.getLogger(__name__)

_IPV4 = re.compile(r"\d+\.\d+\.\d+\.\d+")


def gateway_command(system: Optional[str] = None) -> List[str]:
    system = system or platform.system()
    if system == "Windows":
        return ["route", "print", "0.0.0.0"]
    if system == "Darwin":
        return ["route", "-n", "get", "default"]
    return ["ip", "route"]


def parse_default_gateway(output: str, system: Optional[str] = None) -> Optional[str]:
    """Pull the default gateway address out of the routing table output."""
    system = system or platform.system()
    for line in (output or "").splitlines():
        if system == "Windows":
            parts = line.split()
            if len(parts) >= 3 and parts[0] == "0.0.0.0" and parts[1] == "0.0.0.0":
                if _IPV4.fullmatch(parts[2]):
                    return parts[2]
        elif system == "Darwin":
            match = re.search(r"gateway:\s*(\d+\.\d+\.\d+\.\d+)", line)
            if match:
                return match.group(1)
        elif "default via" in line:
            parts = line.split()
            if len(parts) >= 3:
                return parts[2]
    return None


class ConnectivityChecker:
    def __init__(
        self,
        executor: ProbeExecutor,
        internet_host: str = "8.8.8.8",
        dns_host: str = "1.1.1.1",
        timeout_ms: int = 2000,
        system: Optional[str] = None,
    ):
        self.executor = executor
        self.internet_host = internet_host
        self.dns_host = dns_host
        self.timeout_ms = timeout_ms
        self.system = system or platform.system()

    async def default_gateway(self) -> Optional[str]:
        result = await self.executor.run_command(gateway_command(self.system), timeout=5.0)
        if not result.ok:
            LOGGER.debug("Failed to get default gateway: %s", result.error)
            return None
        return parse_default_gateway(result.value.stdout, self.system)

    async def _reachable(self, host: Optional[str]) -> bool:
        if not host:
            return False
        command = build_ping_command(host, self.timeout_ms, self.system)
        result = await self.executor.run_command(command, timeout=self.timeout_ms / 1000.0 + 0.5)
        if not result.ok or result.value.exit_code != 0:
            return False
        return parse_ping_latency_ms(result.value.stdout) is not None

    async def _gateway_reachable(self) -> tuple:
        gateway_ip = await self.default_gateway()
        return gateway_ip, await self._reachable(gateway_ip)

    async def check(self) -> ConnectivityStatus:
        internet, dns, (gateway_ip, gateway) = await asyncio.gather(
            self._reachable(self.internet_host),
            self._reachable(self.dns_host),
            self._gateway_reachable(),
        )
        status = ConnectivityStatus(internet=internet, dns=dns, gateway=gateway, gateway_ip=gateway_ip)
        LOGGER.info(
            "Connectivity: internet=%s dns=%s gateway=%s (%s)",
            internet,
            dns,
            gateway,
            gateway_ip or "unknown",
        )
        return status
