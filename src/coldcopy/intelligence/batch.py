"""Concurrent batch generation with per-entry failure isolation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from coldcopy.core.models import BatchResult, GenerationRequest

from .orchestrator import GenerationOrchestrator

LOGGER = logging.getLogger(__name__)

MISSING_RESULT_MESSAGE = "No result produced for entry"


class BatchCoordinator:
    """Fan generation requests out to the orchestrator with bounded parallelism."""

    def __init__(
        self, orchestrator: GenerationOrchestrator, *, max_concurrency: int = 4
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._orchestrator = orchestrator
        self._max_concurrency = max_concurrency

    async def run_batch(
        self, entries: Sequence[GenerationRequest]
    ) -> list[BatchResult]:
        """Generate every entry and return results aligned with ``entries``.

        A failing entry is reported in its own slot and never affects the
        others. Nothing is retried.
        """
        if not entries:
            return []
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _run(index: int, entry: GenerationRequest) -> BatchResult:
            outcome = BatchResult(index=index)
            async with semaphore:
                try:
                    outcome.succeed(await self._orchestrator.generate(entry))
                except Exception as exc:  # noqa: BLE001 - isolate entry failures
                    LOGGER.warning("Batch entry %d failed: %s", index, exc)
                    outcome.fail(str(exc) or exc.__class__.__name__)
            return outcome

        LOGGER.info(
            "Running batch of %d entr%s (max concurrency %d)",
            len(entries),
            "y" if len(entries) == 1 else "ies",
            self._max_concurrency,
        )
        outcomes = await asyncio.gather(
            *(_run(index, entry) for index, entry in enumerate(entries)),
            return_exceptions=True,
        )

        results: list[BatchResult] = []
        for index in range(len(entries)):
            outcome = outcomes[index] if index < len(outcomes) else None
            if not isinstance(outcome, BatchResult):
                LOGGER.error("Batch entry %d produced no result: %r", index, outcome)
                outcome = BatchResult(index=index)
                outcome.fail(MISSING_RESULT_MESSAGE)
            results.append(outcome)
        failed = sum(1 for item in results if not item.ok)
        LOGGER.info("Batch finished: %d ok, %d failed", len(results) - failed, failed)
        return results


__all__ = ["BatchCoordinator", "MISSING_RESULT_MESSAGE"]
