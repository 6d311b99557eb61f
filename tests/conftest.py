"""Shared fixtures: a scripted probe executor and a manual clock."""

from collections import deque
from typing import Callable, Dict, List, Optional, Union

import pytest

from netradar.config import AppConfig
from netradar.measurements.errors import ProbeTimeout, ProbeUnreachable
from netradar.probes import CommandOutput, ProbeResult, TransferOutcome, TransferRequest

Scripted = Union[ProbeResult, Callable[..., ProbeResult], Exception]


def ping_reply(ms: float) -> ProbeResult:
    stdout = (
        "PING host (10.0.0.1) 56(84) bytes of data.\n"
        f"64 bytes from 10.0.0.1: icmp_seq=1 ttl=117 time={ms} ms\n"
    )
    return ProbeResult.success(CommandOutput(stdout=stdout, exit_code=0))


def ping_lost() -> ProbeResult:
    return ProbeResult.success(CommandOutput(stdout="1 packets transmitted, 0 received", exit_code=1))


def transfer_ok(bytes_transferred: int, elapsed: float, status: int = 200, body: bytes = b"") -> ProbeResult:
    return ProbeResult.success(
        TransferOutcome(
            bytes_transferred=bytes_transferred,
            elapsed_seconds=elapsed,
            http_status=status,
            body=body,
        )
    )


def timed_out() -> ProbeResult:
    return ProbeResult.failure(ProbeTimeout("timed out"))


def unreachable() -> ProbeResult:
    return ProbeResult.failure(ProbeUnreachable("connection refused"))


class FakeProbeExecutor:
    """Probe executor that replays scripted results.

    Commands are served from a FIFO queue. Transfers are matched by URL
    first (a queue per URL), then fall back to ``default_transfer``.
    Anything unscripted fails as unreachable.
    """

    def __init__(self):
        self.commands: deque = deque()
        self.transfers_by_url: Dict[str, deque] = {}
        self.default_transfer: Optional[Scripted] = None
        self.default_command: Optional[Scripted] = None
        self.command_calls: List[list] = []
        self.transfer_calls: List[TransferRequest] = []

    def queue_commands(self, *results: Scripted) -> None:
        self.commands.extend(results)

    def queue_transfer(self, url: str, *results: Scripted) -> None:
        self.transfers_by_url.setdefault(url, deque()).extend(results)

    @staticmethod
    def _resolve(item: Scripted, *args) -> ProbeResult:
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(*args)
        return item

    async def run_command(self, argv, timeout):
        self.command_calls.append(list(argv))
        if self.commands:
            return self._resolve(self.commands.popleft(), argv)
        if self.default_command is not None:
            return self._resolve(self.default_command, argv)
        return unreachable()

    async def transfer(self, request: TransferRequest):
        self.transfer_calls.append(request)
        queue = self.transfers_by_url.get(request.url)
        if queue:
            return self._resolve(queue.popleft(), request)
        if self.default_transfer is not None:
            return self._resolve(self.default_transfer, request)
        return unreachable()


class ManualClock:
    def __init__(self, start: float = 1000.0):
        self.now = start
        self.steps: deque = deque()

    def advance_on_next_calls(self, *deltas: float) -> None:
        self.steps.extend(deltas)

    def __call__(self) -> float:
        if self.steps:
            self.now += self.steps.popleft()
        return self.now


@pytest.fixture
def executor():
    return FakeProbeExecutor()


@pytest.fixture
def offline_executor():
    """Every probe fails, as on a machine with no network at all."""
    fake = FakeProbeExecutor()
    fake.default_command = timed_out()
    fake.default_transfer = timed_out()
    return fake


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def config(tmp_path):
    cfg = AppConfig.default(root_dir=tmp_path)
    cfg.paths.scratch_dir = tmp_path / "scratch"
    cfg.paths.logs_dir = tmp_path / "logs"
    return cfg
