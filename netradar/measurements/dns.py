"""Timed DNS resolution checks."""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..probes import ProbeExecutor
from .models import DnsLookup, DnsReport

LOGGER = logging.getLogger(__name__)

DEFAULT_DOMAINS = ("google.com", "cloudflare.com", "github.com")
RESOLV_CONF = Path("/etc/resolv.conf")

_IPV4 = re.compile(r"\b(\d{1,3}(?:\.\d{1,3}){3})\b")


def parse_nslookup_address(output: Optional[str]) -> Optional[str]:
    """First IPv4 address in the answer section of ``nslookup`` output.

    Everything before the first ``Name:`` line describes the resolver
    itself and is skipped.
    """
    if not output:
        return None
    _, found, answers = output.partition("Name:")
    if not found:
        return None
    match = _IPV4.search(answers)
    return match.group(1) if match else None


def parse_nameservers(text: str) -> List[str]:
    servers = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "nameserver":
            servers.append(parts[1])
    return servers


class DnsChecker:
    """Resolves a fixed set of domains one by one and times each lookup."""

    def __init__(
        self,
        executor: ProbeExecutor,
        domains: Sequence[str] = DEFAULT_DOMAINS,
        timeout: float = 5.0,
        resolv_conf: Path = RESOLV_CONF,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.executor = executor
        self.domains = list(domains)
        self.timeout = timeout
        self.resolv_conf = Path(resolv_conf)
        self.clock = clock

    def nameservers(self) -> List[str]:
        try:
            return parse_nameservers(self.resolv_conf.read_text(encoding="utf-8"))
        except OSError as exc:
            LOGGER.debug("No resolver list at %s: %s", self.resolv_conf, exc)
            return []

    async def lookup(self, domain: str) -> DnsLookup:
        started = self.clock()
        result = await self.executor.run_command(["nslookup", domain], self.timeout)
        elapsed_ms = round((self.clock() - started) * 1000, 2)

        if not result.ok or result.value.exit_code != 0:
            LOGGER.debug("Lookup of %s failed: %s", domain, result.error or f"exit {result.value.exit_code}")
            return DnsLookup(domain=domain, resolved=False, time_ms=elapsed_ms)
        ip = parse_nslookup_address(result.value.stdout)
        return DnsLookup(domain=domain, resolved=ip is not None, time_ms=elapsed_ms, ip=ip)

    async def check(self) -> DnsReport:
        lookups = []
        for domain in self.domains:
            lookups.append(await self.lookup(domain))
        resolved = sum(1 for lookup in lookups if lookup.resolved)
        LOGGER.info("DNS: %d/%d test domains resolved", resolved, len(lookups))
        return DnsReport(servers=tuple(self.nameservers()), lookups=tuple(lookups))
