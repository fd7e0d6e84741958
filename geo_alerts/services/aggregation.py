"""Run every feed adapter for one cycle and combine their output."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Sequence

from ..config import AGGREGATOR_TIMEOUT_SECONDS
from ..models import RawItem
from ..sources.base import NEWS_GROUP, SOCIAL_GROUP, CancellationToken, SourceAdapter

logger = logging.getLogger(__name__)

GROUPS: tuple[str, ...] = (NEWS_GROUP, SOCIAL_GROUP)


class Aggregator:
    """Fan out to adapters concurrently, fan in in registration order.

    News adapters come before social adapters; within a group the order is
    the order in which adapters were registered. An adapter that fails or
    does not finish within ``timeout`` seconds contributes no items.
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter] | None,
        *,
        timeout: float = AGGREGATOR_TIMEOUT_SECONDS,
    ) -> None:
        if adapters is None:
            raise ValueError("Aggregator requires an adapter registry")
        for adapter in adapters:
            if adapter.group not in GROUPS:
                raise ValueError(f"Unknown source group {adapter.group!r} for {adapter.name}")
        self.adapters: List[SourceAdapter] = list(adapters)
        self.timeout = timeout

    def adapters_for(self, group: str) -> List[SourceAdapter]:
        if group not in GROUPS:
            raise ValueError(f"Unknown source group {group!r}; expected one of {GROUPS}")
        return [adapter for adapter in self.adapters if adapter.group == group]

    def run(self, cancel: CancellationToken | None = None) -> List[RawItem]:
        """Fetch from every adapter (news group, then social group)."""
        ordered = [adapter for group in GROUPS for adapter in self.adapters_for(group)]
        items = self._run_adapters(ordered, cancel)
        logger.info("Fetched %d total content items from %d adapters", len(items), len(ordered))
        return items

    def fetch_group(self, group: str, cancel: CancellationToken | None = None) -> List[RawItem]:
        """Fetch from one source group only."""
        items = self._run_adapters(self.adapters_for(group), cancel)
        logger.info("Fetched %d %s content items", len(items), group)
        return items

    def _run_adapters(
        self,
        adapters: Sequence[SourceAdapter],
        cancel: CancellationToken | None,
    ) -> List[RawItem]:
        if not adapters:
            return []

        executor = ThreadPoolExecutor(
            max_workers=len(adapters), thread_name_prefix="source-adapter"
        )
        try:
            futures: Dict[int, Future] = {
                idx: executor.submit(adapter.fetch, cancel) for idx, adapter in enumerate(adapters)
            }
            _, not_done = wait(futures.values(), timeout=self.timeout)

            results: List[RawItem] = []
            for idx, adapter in enumerate(adapters):
                future = futures[idx]
                if future in not_done:
                    logger.warning(
                        "%s did not finish within %.0fs, dropping its results",
                        adapter.name,
                        self.timeout,
                    )
                    continue
                try:
                    results.extend(future.result())
                except Exception:  # adapters should not raise; isolate one that does
                    logger.exception("Adapter %s failed unexpectedly", adapter.name)
            return results
        finally:
            # A hung adapter must not hold the cycle; its thread finishes on its own.
            executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["Aggregator", "GROUPS"]
