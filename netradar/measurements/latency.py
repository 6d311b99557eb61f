"""Echo-probe latency measurement and RTT statistics."""

from __future__ import annotations

import logging
import math
import platform
import re
from datetime import datetime
from typing import List, Optional, Sequence

from ..probes import ProbeExecutor
from .errors import ParseFailure
from .models import LatencyStatistics

LOGGER = logging.getLogger(__name__)

_LESS_THAN_PATTERN = re.compile(r"time<(\d+(?:\.\d+)?)", re.IGNORECASE)
_TIME_PATTERN = re.compile(r"time\s*=\s*(\d+(?:\.\d+)?)\s*ms", re.IGNORECASE)


def parse_ping_latency_ms(output: Optional[str]) -> Optional[float]:
    """Extract the round-trip time from a single-echo ping output.

    Handles "time=12.3 ms" (Linux/macOS), "time=15ms" and "time<1ms"
    (Windows). "time<N" is read as N/2. Returns None when no time is found.
    """
    if not output:
        return None

    match = _LESS_THAN_PATTERN.search(output)
    if match:
        return float(match.group(1)) / 2.0

    match = _TIME_PATTERN.search(output)
    if match:
        return float(match.group(1))
    return None


def build_ping_command(host: str, timeout_ms: int, system: Optional[str] = None) -> List[str]:
    system = system or platform.system()
    if system == "Windows":
        return ["ping", "-n", "1", "-w", str(timeout_ms), host]
    if system == "Linux":
        return ["ping", "-c", "1", "-W", str(max(1, math.ceil(timeout_ms / 1000))), host]
    # macOS/BSD -W means something else; rely on the probe deadline
    return ["ping", "-c", "1", host]


def summarize_samples(
    host: str,
    samples: Sequence[float],
    requested: int,
    captured_at: Optional[datetime] = None,
) -> LatencyStatistics:
    """Reduce received RTT samples to min/max/avg/jitter/loss.

    Jitter is the population standard deviation. Loss is the share of
    ``requested`` probes that produced no sample, clamped to [0, 100].
    """
    if requested < 1:
        raise ValueError("requested sample count must be at least 1")
    captured_at = captured_at or datetime.utcnow()
    if not samples:
        return LatencyStatistics.total_loss(host, captured_at)

    count = len(samples)
    avg = sum(samples) / count
    variance = sum((sample - avg) ** 2 for sample in samples) / count
    loss = min(100.0, max(0.0, (requested - count) / requested * 100))

    return LatencyStatistics(
        host=host,
        min_ms=round(min(samples), 2),
        max_ms=round(max(samples), 2),
        avg_ms=round(avg, 2),
        jitter_ms=round(math.sqrt(variance), 2),
        loss_percent=round(loss, 2),
        samples=tuple(samples),
        captured_at=captured_at,
    )


class LatencyProbe:
    def __init__(self, executor: ProbeExecutor, timeout_ms: int = 1000, system: Optional[str] = None):
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self.executor = executor
        self.timeout_ms = timeout_ms
        self.system = system or platform.system()

    async def measure(self, host: str, sample_count: int) -> LatencyStatistics:
        """Send ``sample_count`` independent echo probes and summarise the replies.

        Lost, timed out and unparseable probes are omitted. Total loss is a
        normal result (loss 100), never an exception.
        """
        if not host or not host.strip():
            raise ValueError("host must be a non-empty address or hostname")
        if sample_count < 1:
            raise ValueError("sample_count must be at least 1")

        command = build_ping_command(host, self.timeout_ms, self.system)
        # Leave ping its own -W budget before the executor deadline trips
        timeout = self.timeout_ms / 1000.0 + 0.5
        samples: List[float] = []

        for index in range(sample_count):
            result = await self.executor.run_command(command, timeout)
            if not result.ok:
                LOGGER.debug("Echo %d to %s failed: %s", index + 1, host, result.error)
                continue
            output = result.value
            if output.exit_code != 0:
                LOGGER.debug("Echo %d to %s lost (exit code %d)", index + 1, host, output.exit_code)
                continue
            latency = parse_ping_latency_ms(output.stdout)
            if latency is None:
                LOGGER.debug(
                    "Echo %d to %s: %s",
                    index + 1,
                    host,
                    ParseFailure(f"no round-trip time in {output.stdout[:80]!r}"),
                )
                continue
            samples.append(latency)

        stats = summarize_samples(host, samples, sample_count)
        LOGGER.info(
            "Latency to %s: avg %.2f ms, jitter %.2f ms, loss %.1f%% (%d/%d replies)",
            host,
            stats.avg_ms,
            stats.jitter_ms,
            stats.loss_percent,
            stats.received,
            sample_count,
        )
        return stats
