"""Tests for ServerSelector."""

import asyncio

import pytest

from conftest import timed_out, transfer_ok, unreachable
from netradar.measurements.models import Endpoint
from netradar.measurements.servers import ServerSelector


def endpoints(count=3):
    return [
        Endpoint(name=f"srv{i}", location=f"loc{i}", download_url=f"http://srv{i}.test/100MB.bin")
        for i in range(1, count + 1)
    ]


class TestServerSelector:
    def test_only_second_responds(self, executor):
        candidates = endpoints()
        executor.queue_transfer(candidates[0].download_url, timed_out())
        executor.queue_transfer(candidates[1].download_url, transfer_ok(0, 0.120))
        executor.queue_transfer(candidates[2].download_url, unreachable())

        best = asyncio.run(ServerSelector(executor).select_best(candidates))
        assert best is candidates[1]

    def test_no_responses_falls_back_to_first(self, offline_executor):
        candidates = endpoints()
        best = asyncio.run(ServerSelector(offline_executor).select_best(candidates))
        assert best is candidates[0]

    def test_fastest_responder_wins(self, executor):
        candidates = endpoints()
        executor.queue_transfer(candidates[0].download_url, transfer_ok(0, 0.300))
        executor.queue_transfer(candidates[1].download_url, transfer_ok(0, 0.250))
        executor.queue_transfer(candidates[2].download_url, transfer_ok(0, 0.050))

        best = asyncio.run(ServerSelector(executor).select_best(candidates))
        assert best is candidates[2]

    def test_equal_times_keep_input_order(self, executor):
        candidates = endpoints()
        executor.default_transfer = transfer_ok(0, 0.1)
        best = asyncio.run(ServerSelector(executor).select_best(candidates))
        assert best is candidates[0]

    def test_only_first_k_candidates_are_probed(self, executor):
        candidates = endpoints(5)
        executor.queue_transfer(candidates[4].download_url, transfer_ok(0, 0.001))
        executor.default_transfer = transfer_ok(0, 0.5)

        best = asyncio.run(ServerSelector(executor, candidate_limit=3).select_best(candidates))

        assert best is candidates[0]
        probed = {call.url for call in executor.transfer_calls}
        assert probed == {c.download_url for c in candidates[:3]}

    def test_probes_are_head_requests_with_timeout(self, executor):
        candidates = endpoints(1)
        asyncio.run(ServerSelector(executor, timeout=5.0).select_best(candidates))
        call = executor.transfer_calls[0]
        assert call.method == "HEAD"
        assert call.timeout == 5.0

    def test_probes_run_concurrently(self):
        """All candidate probes are in flight before any completes."""
        in_flight = []
        peak = []

        class SlowExecutor:
            async def transfer(self, request):
                in_flight.append(request.url)
                peak.append(len(in_flight))
                await asyncio.sleep(0.01)
                in_flight.remove(request.url)
                return transfer_ok(0, 0.01)

        asyncio.run(ServerSelector(SlowExecutor()).select_best(endpoints()))
        assert max(peak) == 3

    def test_empty_candidate_list_rejected(self, executor):
        with pytest.raises(ValueError):
            asyncio.run(ServerSelector(executor).select_best([]))
