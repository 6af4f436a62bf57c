"""Run summary: JSON snapshot and Markdown report."""

import json
import logging

from selfcite.analysis.metrics import citation_coverage, total_citations
from selfcite.pipeline.orchestrator import AnalysisResult

logger = logging.getLogger(__name__)


def build_summary(result: AnalysisResult) -> dict:
    """JSON-serializable view of the author, metrics and coverage.

    Citing works are left out; the publications table carries per-paper data.
    """
    author = result.author
    summary = {
        "author": {
            "id": author.author_id,
            "author_ids": author.author_ids,
            "name": author.name,
            "name_variants": author.name_variants,
            "affiliations": author.affiliations,
            "homepage": author.homepage,
            "url": author.url,
            "paper_count": author.paper_count,
            "citation_count": author.citation_count,
            "h_index": author.h_index,
        },
        "metrics": result.metrics.model_dump(),
        "total_citations": total_citations(result.publications),
        "citation_coverage": round(citation_coverage(result.publications), 2),
    }
    if result.original_authors:
        summary["original_authors"] = [
            rec.model_dump(mode="json") for rec in result.original_authors
        ]
    return summary


def export_summary_json(result: AnalysisResult, output_path: str) -> None:
    with open(output_path, "w") as f:
        json.dump(build_summary(result), f, indent=2)
    logger.info("Summary JSON exported to %s", output_path)


def rate_band(rate: float) -> str:
    """Qualitative band of a self-citation rate given in percent."""
    if rate > 10:
        return "High"
    if rate > 5:
        return "Moderate"
    return "Low"


def generate_report(result: AnalysisResult) -> str:
    """Markdown report of the run, one section per detection method."""
    author = result.author
    metrics = result.metrics
    lines = [f"# Self-citation analysis: {author.name}", ""]

    if author.is_merged:
        lines.append(f"Merged author ids: {', '.join(author.author_ids)}")
        if author.name_variants:
            lines.append(
                f"Warning: merged records carry different names "
                f"({', '.join(author.name_variants)})"
            )
        lines.append("")

    lines += [
        f"- Papers: {metrics.total_papers}",
        f"- Citations: {total_citations(result.publications)}",
        f"- H-index: {author.h_index if author.h_index is not None else 'n/a'}",
        f"- Citation coverage: {citation_coverage(result.publications):.1f}%",
        "",
    ]

    titles = {
        1: "Method 1: target author in citing paper",
        2: "Method 2: author overlap",
    }
    for method, title in titles.items():
        m = metrics.for_method(method)
        share = (
            100 * m["papers_with_self_citations"] / metrics.total_papers
            if metrics.total_papers
            else 0.0
        )
        lines += [
            f"## {title}",
            "",
            f"- Self-citations: {m['self_citations']}",
            f"- Self-citation rate: {m['self_citation_rate']:.1f}% "
            f"({rate_band(m['self_citation_rate'])})",
            f"- Papers with self-citations: {m['papers_with_self_citations']} "
            f"({share:.1f}% of papers)",
            f"- Average per paper: {m['average_self_citations_per_paper']:.2f}",
            f"- Self-citation H-index: {m['self_citation_h_index']}",
            f"- H-index without self-citations: {m['h_index_without_self_citations']}",
            "",
        ]

    return "\n".join(lines)


def export_report_md(result: AnalysisResult, output_path: str) -> None:
    with open(output_path, "w") as f:
        f.write(generate_report(result))
    logger.info("Report exported to %s", output_path)
