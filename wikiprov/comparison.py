"""Side-by-side provenance metrics for several Wikidata items."""

from __future__ import annotations

import asyncio
import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from . import config
from .aggregation import METRIC_HANDLERS
from .errors import DecodeError, TransportError
from .templates import render_query

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"


@dataclass
class AggregatedRecord:
    identifier: str
    label: Optional[str] = None
    external_identifier_count: int = 0
    referenced_percentage: float = 0.0
    wiki_project_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SubFetchFailure:
    identifier: str
    metric: str
    error: Exception


def parse_identifier_list(raw: str) -> list[str]:
    """`"Q1339, Q254"` -> `["Q1339", "Q254"]`; blanks and `+` are stripped."""
    identifiers = []
    for part in (raw or "").split(","):
        cleaned = "".join(part.split()).replace("+", "")
        if cleaned:
            identifiers.append(cleaned)
    return identifiers


class ItemComparisonEngine:
    """Fetch the comparison metrics for each identifier concurrently.

    Every (identifier, metric) pair is one sub-fetch; all of them are in flight
    at once, with the blocking client calls spread over a bounded worker pool.
    A failed sub-fetch leaves its field at the zero value and is recorded in
    `failures`. Each call to `compare_items` starts a new generation, and
    results belonging to an older generation are dropped on arrival.
    """

    def __init__(
        self,
        client,
        language: str = config.DEFAULT_LANGUAGE,
        max_workers: int = config.COMPARE_MAX_WORKERS,
        on_settled: Optional[Callable[[str, str], None]] = None,
    ):
        self.client = client
        self.language = language
        self.on_settled = on_settled
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="wikiprov")
        self.state = RunState.IDLE
        self.generation = 0
        self.identifiers: list[str] = []
        self.records: dict[str, AggregatedRecord] = {}
        self.failures: list[SubFetchFailure] = []

    def close(self):
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _is_current(self, generation):
        return generation == self.generation

    async def _sub_fetch(self, generation, identifier, metric):
        query_name, reducer = METRIC_HANDLERS[metric]
        query = render_query(query_name, {"item": identifier, "lang": self.language})
        loop = asyncio.get_running_loop()
        failure = None
        try:
            result_set = await loop.run_in_executor(self._executor, self.client.execute, query)
        except (TransportError, DecodeError) as exc:
            failure = exc

        if not self._is_current(generation):
            logger.debug("Dropping stale %s for %s (generation %s)", metric, identifier, generation)
            return
        self.state = RunState.AGGREGATING
        if failure is None:
            setattr(self.records[identifier], metric, reducer(result_set))
        else:
            logger.warning("[!] %s for %s failed: %s", metric, identifier, failure)
            self.failures.append(SubFetchFailure(identifier, metric, failure))
        if self.on_settled is not None:
            self.on_settled(identifier, metric)

    async def compare_items(self, identifiers: Iterable[str]) -> dict[str, AggregatedRecord]:
        """Run one comparison and return identifier -> AggregatedRecord.

        A call that is superseded by a newer one before it settles returns an
        empty mapping; the engine state then belongs to the newer run.
        """
        identifiers = list(dict.fromkeys(identifiers))
        self.generation += 1
        generation = self.generation
        self.identifiers = identifiers
        self.records = {identifier: AggregatedRecord(identifier) for identifier in identifiers}
        self.failures = []
        self.state = RunState.FETCHING
        logger.info(
            "[*] Comparing %s items (%s sub-fetches, generation %s)",
            len(identifiers),
            len(identifiers) * len(METRIC_HANDLERS),
            generation,
        )

        tasks = [
            self._sub_fetch(generation, identifier, metric)
            for identifier in identifiers
            for metric in METRIC_HANDLERS
        ]
        # Every sub-fetch settles before an error is raised
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        if not self._is_current(generation):
            logger.info("[*] Comparison generation %s superseded; results discarded.", generation)
            return {}
        self.state = RunState.COMPLETE
        errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if errors:
            logger.error("[!] Comparison generation %s aborted: %s", generation, errors[0])
            raise errors[0]
        logger.info("[+] Comparison complete with %s failed sub-fetches.", len(self.failures))
        return dict(self.records)
