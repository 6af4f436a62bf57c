"""End-to-end self-citation analysis run."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence

from pydantic import BaseModel

from selfcite.analysis.classifier import count_self_citations
from selfcite.analysis.identity import LogicalAuthor, merge_authors
from selfcite.analysis.metrics import AggregateMetrics, compute_metrics, h_index
from selfcite.core.config import AnalysisConfig
from selfcite.core.errors import AnalysisCancelled, InputError
from selfcite.sources.models import AuthorRecord, Publication
from selfcite.sources.semantic_scholar import SemanticScholarClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ── Run Lifecycle ────────────────────────────────────────────────────


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING_AUTHORS = "fetching_authors"
    FETCHING_PUBLICATIONS = "fetching_publications"
    ANALYZING_CITATIONS = "analyzing_citations"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = {RunState.DONE, RunState.FAILED, RunState.CANCELLED}

ALLOWED_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.FETCHING_AUTHORS, RunState.FAILED},
    RunState.FETCHING_AUTHORS: {RunState.FETCHING_PUBLICATIONS, RunState.FAILED},
    RunState.FETCHING_PUBLICATIONS: {RunState.ANALYZING_CITATIONS, RunState.FAILED},
    RunState.ANALYZING_CITATIONS: {
        RunState.AGGREGATING,
        RunState.FAILED,
        RunState.CANCELLED,
    },
    RunState.AGGREGATING: {RunState.DONE, RunState.FAILED},
    # Terminal states with no forward transitions
    RunState.DONE: set(),
    RunState.FAILED: set(),
    RunState.CANCELLED: set(),
}


class AnalysisResult(BaseModel):
    """Outcome of a completed run.

    `original_authors` is set only when several identifiers were merged,
    so callers can warn about differing names.
    """

    author: LogicalAuthor
    publications: list[Publication]
    metrics: AggregateMetrics
    original_authors: Optional[list[AuthorRecord]] = None


# ── Input ────────────────────────────────────────────────────────────


def normalize_author_ids(author_ids: str | Iterable[str]) -> list[str]:
    """Split comma-separated input, strip blanks and drop repeats (order kept).

    Raises InputError when no identifier remains.
    """
    if isinstance(author_ids, str):
        author_ids = [author_ids]

    ids: list[str] = []
    for raw in author_ids:
        for part in str(raw).split(","):
            part = part.strip()
            if part and part not in ids:
                ids.append(part)

    if not ids:
        raise InputError("No author identifier given")
    return ids


# ── Analyzer ─────────────────────────────────────────────────────────


class SelfCitationAnalyzer:
    """Drives one analysis run at a time: authors, publications, citations, metrics.

    Holds only configuration between runs. A failed or cancelled run
    returns nothing; partial data stays local to `run`.
    """

    def __init__(
        self,
        client: SemanticScholarClient,
        config: Optional[AnalysisConfig] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.config = config or AnalysisConfig()
        self.progress = progress
        self.cancel_event = cancel_event
        self._sleep = sleep
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def run(self, author_ids: str | Iterable[str]) -> AnalysisResult:
        """Analyze the author (or merged authors) behind `author_ids`."""
        self._state = RunState.IDLE
        t_start = time.time()

        try:
            ids = normalize_author_ids(author_ids)

            self._transition(RunState.FETCHING_AUTHORS)
            records = self._fetch_authors(ids)
            author = merge_authors(records)

            self._transition(RunState.FETCHING_PUBLICATIONS)
            publications = self.client.get_merged_publications(ids)

            self._transition(RunState.ANALYZING_CITATIONS)
            analyzed = self._analyze_publications(publications, ids)

            self._transition(RunState.AGGREGATING)
            if author.is_merged:
                author = author.model_copy(
                    update={"h_index": h_index(p.citation_count for p in analyzed)}
                )
            metrics = compute_metrics(analyzed)

            result = AnalysisResult(
                author=author,
                publications=analyzed,
                metrics=metrics,
                original_authors=records if len(records) > 1 else None,
            )
            self._transition(RunState.DONE)

        except AnalysisCancelled:
            self._transition(RunState.CANCELLED)
            logger.warning("Analysis cancelled")
            raise
        except Exception as exc:
            self._transition(RunState.FAILED)
            logger.error("Analysis failed: %s", exc)
            raise

        logger.info(
            "Analysis of %s complete in %.1fs (%d publications)",
            author.name,
            time.time() - t_start,
            len(analyzed),
        )
        return result

    # ── Steps ────────────────────────────────────────────────────────

    def _fetch_authors(self, ids: Sequence[str]) -> list[AuthorRecord]:
        """One request per identifier, paced by `author_pause_s`."""
        records: list[AuthorRecord] = []
        for i, author_id in enumerate(ids):
            if i > 0:
                self._sleep(self.config.pipeline.author_pause_s)
            record = self.client.get_author(author_id)
            logger.info("Author %s: %s", author_id, record.name)
            records.append(record)
        return records

    def _analyze_publications(
        self, publications: Sequence[Publication], author_ids: Sequence[str]
    ) -> list[Publication]:
        """Fetch and classify citations batch by batch.

        Members of a batch run concurrently when the batch size exceeds 1.
        Progress fires once per publication in completion order; results
        keep the input order.
        """
        total = len(publications)
        batch_size = self.config.pipeline.batch_size
        results: list[Optional[Publication]] = [None] * total
        completed = 0

        logger.info("Analyzing citations of %d publications (batch size %d)", total, batch_size)
        executor = ThreadPoolExecutor(max_workers=batch_size) if batch_size > 1 else None
        try:
            for start in range(0, total, batch_size):
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise AnalysisCancelled(
                        f"Cancelled after {completed}/{total} publications"
                    )

                indices = range(start, min(start + batch_size, total))
                if executor is None:
                    for idx in indices:
                        results[idx] = self._analyze_one(publications[idx], author_ids)
                        completed += 1
                        self._report(completed, total)
                else:
                    futures = {
                        executor.submit(self._analyze_one, publications[idx], author_ids): idx
                        for idx in indices
                    }
                    for future in as_completed(futures):
                        results[futures[future]] = future.result()
                        completed += 1
                        self._report(completed, total)

                if start + batch_size < total:
                    self._sleep(self.config.pipeline.batch_pause_s)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        return results  # type: ignore[return-value]

    def _analyze_one(self, publication: Publication, author_ids: Sequence[str]) -> Publication:
        citing = self.client.get_citing_works(publication.paper_id)
        method1, method2 = count_self_citations(publication, citing, author_ids)
        logger.debug(
            "Paper %s: %d citing works, %d/%d self-citations (method 1/2)",
            publication.paper_id,
            len(citing),
            method1,
            method2,
        )
        return publication.model_copy(
            update={
                "citing_works": citing,
                "method1_self_citation_count": method1,
                "method2_self_citation_count": method2,
            }
        )

    def _report(self, completed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(completed, total)

    def _transition(self, new_state: RunState) -> None:
        if new_state not in ALLOWED_TRANSITIONS[self._state]:
            raise RuntimeError(f"Invalid run transition: {self._state.value} -> {new_state.value}")
        logger.debug("Run state: %s -> %s", self._state.value, new_state.value)
        self._state = new_state


# ── Convenience ──────────────────────────────────────────────────────


def analyze_self_citations(
    author_ids: str | Iterable[str],
    config: Optional[AnalysisConfig] = None,
    progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> AnalysisResult:
    """Run one analysis against the live Semantic Scholar API."""
    config = config or AnalysisConfig()
    client = SemanticScholarClient.from_config(config)
    analyzer = SelfCitationAnalyzer(client, config, progress=progress, cancel_event=cancel_event)
    return analyzer.run(author_ids)
