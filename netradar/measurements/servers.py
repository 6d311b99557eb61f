"""Transfer endpoint selection."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..probes import ProbeExecutor, TransferRequest
from .models import Endpoint

LOGGER = logging.getLogger(__name__)


class ServerSelector:
    """Pick the most responsive endpoint out of the first few candidates.

    Candidates are probed concurrently with a HEAD request each. The
    fastest responder wins; when nobody answers the first candidate is
    returned so that a slow network still gets measured.
    """

    def __init__(self, executor: ProbeExecutor, candidate_limit: int = 3, timeout: float = 5.0):
        if candidate_limit < 1:
            raise ValueError("candidate_limit must be at least 1")
        self.executor = executor
        self.candidate_limit = candidate_limit
        self.timeout = timeout

    async def _probe(self, endpoint: Endpoint) -> Optional[Tuple[Endpoint, float]]:
        result = await self.executor.transfer(
            TransferRequest(url=endpoint.download_url, method="HEAD", timeout=self.timeout)
        )
        if not result.ok:
            LOGGER.debug("Server %s unavailable: %s", endpoint.name, result.error)
            return None
        response_ms = result.value.elapsed_seconds * 1000
        LOGGER.debug("Server %s answered in %.0f ms", endpoint.name, response_ms)
        return endpoint, response_ms

    async def select_best(self, candidates: Sequence[Endpoint]) -> Endpoint:
        if not candidates:
            raise ValueError("at least one candidate endpoint is required")

        probed = list(candidates[: self.candidate_limit])
        outcomes = await asyncio.gather(*(self._probe(endpoint) for endpoint in probed))
        responders: List[Tuple[Endpoint, float]] = [item for item in outcomes if item is not None]

        if not responders:
            LOGGER.warning(
                "No speed test server responded within %.1fs, falling back to %s",
                self.timeout,
                candidates[0].name,
            )
            return candidates[0]

        # sorted() is stable, so equal times keep input order
        responders = sorted(responders, key=lambda item: item[1])
        best, response_ms = responders[0]
        LOGGER.info("Selected server %s (%s) at %.0f ms", best.name, best.location, response_ms)
        return best
