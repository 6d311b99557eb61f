"""Tests for echo-probe parsing, RTT statistics and LatencyProbe."""

import asyncio
import math

import pytest

from conftest import ping_lost, ping_reply, timed_out, unreachable
from netradar.measurements.latency import (
    LatencyProbe,
    build_ping_command,
    parse_ping_latency_ms,
    summarize_samples,
)
from netradar.probes import CommandOutput, ProbeResult


class TestPingParsing:
    """Ping output parsing across platforms."""

    def test_linux_output(self):
        output = """
PING google.com (142.250.185.46) 56(84) bytes of data.
64 bytes from lga25s78-in-f14.1e100.net (142.250.185.46): icmp_seq=1 ttl=117 time=12.3 ms

--- google.com ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
rtt min/avg/max/mdev = 12.345/12.345/12.345/0.000 ms
"""
        assert parse_ping_latency_ms(output) == 12.3

    def test_macos_output(self):
        output = "64 bytes from 172.217.14.206: icmp_seq=0 ttl=56 time=8.123 ms"
        assert parse_ping_latency_ms(output) == 8.123

    def test_windows_output(self):
        output = "Reply from 142.250.185.46: bytes=32 time=15ms TTL=117"
        assert parse_ping_latency_ms(output) == 15.0

    def test_windows_less_than_is_midpoint(self):
        assert parse_ping_latency_ms("Reply from 127.0.0.1: bytes=32 time<1ms TTL=128") == 0.5

    def test_case_and_spacing(self):
        assert parse_ping_latency_ms("TIME = 20.5 MS") == 20.5

    def test_no_match(self):
        assert parse_ping_latency_ms("Request timed out.") is None
        assert parse_ping_latency_ms("") is None
        assert parse_ping_latency_ms(None) is None


class TestPingCommand:
    def test_linux_rounds_timeout_up_to_seconds(self):
        assert build_ping_command("example.com", 1500, "Linux") == ["ping", "-c", "1", "-W", "2", "example.com"]

    def test_windows_uses_milliseconds(self):
        assert build_ping_command("example.com", 800, "Windows") == ["ping", "-n", "1", "-w", "800", "example.com"]

    def test_macos_has_no_wait_flag(self):
        assert build_ping_command("example.com", 1000, "Darwin") == ["ping", "-c", "1", "example.com"]


class TestSummarizeSamples:
    """RTT reduction invariants."""

    def test_reference_samples(self):
        stats = summarize_samples("h", [10, 12, 11, 13, 9], requested=5)
        assert stats.avg_ms == 11
        assert stats.min_ms == 9
        assert stats.max_ms == 13
        assert stats.jitter_ms == pytest.approx(math.sqrt(2), abs=0.01)
        assert stats.loss_percent == 0

    def test_jitter_is_population_standard_deviation(self):
        samples = [20.0, 30.0]
        stats = summarize_samples("h", samples, requested=2)
        # sample stdev would be ~7.07
        assert stats.jitter_ms == 5.0

    @pytest.mark.parametrize("requested,received", [(10, 10), (10, 7), (4, 1), (3, 2), (1, 1)])
    def test_loss_formula(self, requested, received):
        stats = summarize_samples("h", [5.0] * received, requested=requested)
        assert stats.loss_percent == pytest.approx((requested - received) / requested * 100, abs=0.01)

    def test_empty_samples_mean_total_loss(self):
        stats = summarize_samples("h", [], requested=5)
        assert (stats.min_ms, stats.max_ms, stats.avg_ms, stats.jitter_ms) == (0, 0, 0, 0)
        assert stats.loss_percent == 100
        assert stats.samples == ()

    def test_more_samples_than_requested_clamps_loss(self):
        stats = summarize_samples("h", [1.0, 2.0, 3.0], requested=2)
        assert stats.loss_percent == 0

    def test_requested_must_be_positive(self):
        with pytest.raises(ValueError):
            summarize_samples("h", [], requested=0)


class TestLatencyProbe:
    """LatencyProbe with scripted probe results."""

    def test_all_replies(self, executor):
        executor.queue_commands(*(ping_reply(ms) for ms in [10, 12, 11, 13, 9]))
        stats = asyncio.run(LatencyProbe(executor, system="Linux").measure("8.8.8.8", 5))

        assert stats.samples == (10.0, 12.0, 11.0, 13.0, 9.0)
        assert stats.avg_ms == 11
        assert stats.loss_percent == 0
        assert len(executor.command_calls) == 5
        assert executor.command_calls[0][-1] == "8.8.8.8"

    def test_failures_are_omitted_not_retried(self, executor):
        executor.queue_commands(
            ping_reply(20),
            timed_out(),
            ping_lost(),
            unreachable(),
            ProbeResult.success(CommandOutput(stdout="garbage", exit_code=0)),
            ping_reply(30),
        )
        stats = asyncio.run(LatencyProbe(executor, system="Linux").measure("host", 6))

        assert stats.samples == (20.0, 30.0)
        assert stats.loss_percent == pytest.approx(66.67, abs=0.01)
        assert len(executor.command_calls) == 6

    def test_total_loss_returns_normally(self, offline_executor):
        stats = asyncio.run(LatencyProbe(offline_executor).measure("10.255.255.1", 4))

        assert stats.loss_percent == 100
        assert stats.avg_ms == 0
        assert stats.jitter_ms == 0
        assert stats.received == 0

    @pytest.mark.parametrize("count", [0, -1])
    def test_sample_count_must_be_positive(self, executor, count):
        with pytest.raises(ValueError):
            asyncio.run(LatencyProbe(executor).measure("host", count))

    def test_empty_host_rejected(self, executor):
        with pytest.raises(ValueError):
            asyncio.run(LatencyProbe(executor).measure("  ", 3))

    def test_timeout_must_be_positive(self, executor):
        with pytest.raises(ValueError):
            LatencyProbe(executor, timeout_ms=0)
