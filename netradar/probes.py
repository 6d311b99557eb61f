"""Probe execution: the only place that touches the network or the OS.

Measurement components never raise for network trouble. Every primitive
here returns a :class:`ProbeResult` that is either a success carrying a
value or a failure carrying a :class:`ProbeError`.
"""

from __future__ import annotations

import asyncio
import io
import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Generic, Optional, Protocol, Sequence, TypeVar

import requests

from .measurements.errors import ParseFailure, ProbeError, ProbeTimeout, ProbeUnreachable

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

CHUNK_SIZE = 65536
# Grace added on top of a probe's own deadline before the awaiting side gives up
TIMEOUT_GRACE_SECONDS = 1.0


@dataclass(frozen=True)
class ProbeResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[ProbeError] = None

    @classmethod
    def success(cls, value: T) -> "ProbeResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ProbeError) -> "ProbeResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    exit_code: int


@dataclass(frozen=True)
class TransferRequest:
    url: str
    method: str = "GET"
    timeout: float = 120.0
    upload_path: Optional[Path] = None
    multipart: bool = False
    capture_body: bool = False


@dataclass(frozen=True)
class TransferOutcome:
    bytes_transferred: int
    elapsed_seconds: float
    http_status: int
    body: bytes = field(default=b"", repr=False)

    @property
    def status_ok(self) -> bool:
        return 200 <= self.http_status < 300


class ProbeExecutor(Protocol):
    """Environment capability consumed by the measurement core."""

    async def run_command(self, argv: Sequence[str], timeout: float) -> ProbeResult[CommandOutput]:
        ...

    async def transfer(self, request: TransferRequest) -> ProbeResult[TransferOutcome]:
        ...


class _DeadlineReader:
    """File-like request body that stops the upload once its deadline passes.

    requests only bounds individual socket operations; reading the body
    through this wrapper bounds the whole transfer from inside the worker
    thread, so an abandoned upload does not keep using the link.
    """

    def __init__(self, stream: BinaryIO, size: int, deadline: float, clock: Callable[[], float], url: str):
        self._stream = stream
        self._size = size
        self._deadline = deadline
        self._clock = clock
        self._url = url

    def __len__(self) -> int:
        return self._size

    def read(self, size: int = -1) -> bytes:
        if self._clock() > self._deadline:
            raise ProbeTimeout(f"upload to {self._url} exceeded its deadline")
        return self._stream.read(size)


class SystemProbeExecutor:
    """Runs probes with subprocess (ping, route) and requests (HTTP transfers).

    Blocking work is pushed to worker threads so that concurrent probes
    never block the event loop. Transfers enforce their own deadline inside
    the worker; the awaiting side only adds a short grace on top.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: str = "netradar/1.0",
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent
        self.clock = clock

    async def run_command(self, argv: Sequence[str], timeout: float) -> ProbeResult[CommandOutput]:
        try:
            output = await asyncio.wait_for(
                asyncio.to_thread(self._run_command_sync, list(argv), timeout),
                timeout=timeout + TIMEOUT_GRACE_SECONDS,
            )
        except (subprocess.TimeoutExpired, asyncio.TimeoutError):
            LOGGER.debug("Command timed out after %.1fs: %s", timeout, " ".join(argv))
            return ProbeResult.failure(ProbeTimeout(f"{argv[0]} timed out after {timeout}s"))
        except OSError as exc:
            LOGGER.debug("Command could not run: %s (%s)", " ".join(argv), exc)
            return ProbeResult.failure(ProbeUnreachable(str(exc)))
        return ProbeResult.success(output)

    @staticmethod
    def _run_command_sync(argv: Sequence[str], timeout: float) -> CommandOutput:
        completed = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
            shell=False,
        )
        return CommandOutput(stdout=completed.stdout or "", exit_code=completed.returncode)

    async def transfer(self, request: TransferRequest) -> ProbeResult[TransferOutcome]:
        try:
            outcome = await asyncio.wait_for(
                asyncio.to_thread(self._transfer_sync, request),
                timeout=request.timeout + TIMEOUT_GRACE_SECONDS,
            )
        except (requests.Timeout, asyncio.TimeoutError, ProbeTimeout):
            LOGGER.debug("%s %s timed out after %.1fs", request.method, request.url, request.timeout)
            return ProbeResult.failure(ProbeTimeout(f"{request.url} timed out"))
        except (requests.RequestException, OSError) as exc:
            LOGGER.debug("%s %s failed: %s", request.method, request.url, exc)
            return ProbeResult.failure(ProbeUnreachable(str(exc)))
        return ProbeResult.success(outcome)

    def _transfer_sync(self, request: TransferRequest) -> TransferOutcome:
        if request.upload_path is not None:
            return self._upload(request)
        return self._download(request)

    def _download(self, request: TransferRequest) -> TransferOutcome:
        start = self.clock()
        deadline = start + request.timeout
        body = bytearray()
        received = 0
        with self.session.request(
            request.method,
            request.url,
            stream=request.method != "HEAD",
            timeout=request.timeout,
            allow_redirects=True,
        ) as response:
            if request.method != "HEAD":
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    received += len(chunk)
                    if request.capture_body:
                        body.extend(chunk)
                    if self.clock() > deadline:
                        raise ProbeTimeout(f"{request.url} exceeded {request.timeout}s")
            elapsed = self.clock() - start
            return TransferOutcome(
                bytes_transferred=received,
                elapsed_seconds=elapsed,
                http_status=response.status_code,
                body=bytes(body),
            )

    def _upload(self, request: TransferRequest) -> TransferOutcome:
        path = request.upload_path
        size = path.stat().st_size
        with path.open("rb") as handle:
            if request.multipart:
                prepared = self.session.prepare_request(
                    requests.Request(
                        request.method,
                        request.url,
                        files={"file": (path.name, handle, "application/octet-stream")},
                    )
                )
                stream: BinaryIO = io.BytesIO(prepared.body)
                length = len(prepared.body)
            else:
                prepared = self.session.prepare_request(requests.Request(request.method, request.url))
                stream = handle
                length = size

            start = self.clock()
            prepared.body = _DeadlineReader(stream, length, start + request.timeout, self.clock, request.url)
            prepared.headers["Content-Length"] = str(length)
            prepared.headers.pop("Transfer-Encoding", None)
            response = self.session.send(prepared, timeout=request.timeout)
            elapsed = self.clock() - start
        response.close()
        return TransferOutcome(bytes_transferred=size, elapsed_seconds=elapsed, http_status=response.status_code)


def decode_body(outcome: TransferOutcome) -> str:
    """Decode a captured response body, raising ParseFailure on garbage."""
    try:
        return outcome.body.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise ParseFailure("response body is not UTF-8 text") from exc
