"""Bibliometric aggregation over an analyzed publication set."""

import logging
from typing import Iterable, Literal, Sequence

from pydantic import BaseModel, ConfigDict

from selfcite.sources.models import Publication

logger = logging.getLogger(__name__)

METHODS = (1, 2)


class AggregateMetrics(BaseModel):
    """Read-only snapshot of the self-citation metrics of one run."""

    model_config = ConfigDict(frozen=True)

    total_papers: int

    method1_self_citations: int
    method1_papers_with_self_citations: int
    method1_average_self_citations_per_paper: float
    method1_self_citation_rate: float
    method1_self_citation_h_index: int
    method1_h_index_without_self_citations: int

    method2_self_citations: int
    method2_papers_with_self_citations: int
    method2_average_self_citations_per_paper: float
    method2_self_citation_rate: float
    method2_self_citation_h_index: int
    method2_h_index_without_self_citations: int

    def for_method(self, method: int) -> dict:
        """The six per-method fields of `method`, without their prefix."""
        prefix = f"method{method}_"
        return {
            name[len(prefix):]: value
            for name, value in self.model_dump().items()
            if name.startswith(prefix)
        }


# ── H-index ──────────────────────────────────────────────────────────


def h_index(values: Iterable[int]) -> int:
    """Largest h such that h of the values are each at least h."""
    h = 0
    for rank, value in enumerate(sorted(values, reverse=True), 1):
        if value >= rank:
            h = rank
        else:
            break
    return h


# ── Aggregation ──────────────────────────────────────────────────────


def total_citations(publications: Sequence[Publication]) -> int:
    """Sum of the raw citation counts reported by the source."""
    return sum(p.citation_count for p in publications)


def compute_metrics(publications: Sequence[Publication]) -> AggregateMetrics:
    """Aggregate per-publication self-citation counts into AggregateMetrics.

    Rates use the raw citation counts, which can exceed the number of
    citing works the API actually returned.
    """
    total_papers = len(publications)
    citations = total_citations(publications)
    fields: dict = {"total_papers": total_papers}

    for m in METHODS:
        counts = [p.self_citation_count(m) for p in publications]
        self_total = sum(counts)
        fields[f"method{m}_self_citations"] = self_total
        fields[f"method{m}_papers_with_self_citations"] = sum(1 for c in counts if c > 0)
        fields[f"method{m}_average_self_citations_per_paper"] = (
            self_total / total_papers if total_papers else 0.0
        )
        fields[f"method{m}_self_citation_rate"] = (
            100 * self_total / citations if citations else 0.0
        )
        fields[f"method{m}_self_citation_h_index"] = h_index(counts)
        fields[f"method{m}_h_index_without_self_citations"] = h_index(
            max(0, p.citation_count - c) for p, c in zip(publications, counts)
        )

    metrics = AggregateMetrics(**fields)
    logger.info(
        "Metrics: %d papers, %d citations, %d/%d self-citations (method 1/2)",
        total_papers,
        citations,
        metrics.method1_self_citations,
        metrics.method2_self_citations,
    )
    return metrics


def citation_coverage(publications: Sequence[Publication]) -> float:
    """Percentage of raw citations that came back as citing works.

    Publications not yet analyzed contribute no fetched citing works.
    """
    citations = total_citations(publications)
    if not citations:
        return 0.0
    fetched = sum(len(p.citing_works or []) for p in publications)
    return 100 * fetched / citations


# ── Ordering ─────────────────────────────────────────────────────────


SortKey = Literal["self_citations", "citations", "year"]


def sort_publications(
    publications: Sequence[Publication],
    by: SortKey = "self_citations",
    method: int = 1,
) -> list[Publication]:
    """Publications in descending order of self-citations, citations or year.

    The sort is stable; publications without a year come last.
    """
    keys = {
        "self_citations": lambda p: p.self_citation_count(method),
        "citations": lambda p: p.citation_count,
        "year": lambda p: p.year if p.year is not None else -1,
    }
    if by not in keys:
        raise ValueError(f"Unknown sort key: {by}")
    return sorted(publications, key=keys[by], reverse=True)
