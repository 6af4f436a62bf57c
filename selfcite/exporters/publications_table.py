"""Per-publication tables: CSV and Excel."""

import csv
import logging

import openpyxl

from selfcite.analysis.classifier import classify
from selfcite.analysis.metrics import SortKey, sort_publications
from selfcite.pipeline.orchestrator import AnalysisResult

logger = logging.getLogger(__name__)

HEADERS = [
    "paper_id",
    "title",
    "year",
    "venue",
    "authors",
    "citation_count",
    "citing_works_fetched",
    "method1_self_citations",
    "method2_self_citations",
    "url",
]


# ── Helpers ──────────────────────────────────────────────────────────


def _build_publication_rows(
    result: AnalysisResult, sort_by: SortKey = "self_citations", method: int = 1
) -> list[list]:
    rows = []
    for pub in sort_publications(result.publications, by=sort_by, method=method):
        rows.append([
            pub.paper_id,
            pub.title,
            pub.year,
            pub.venue or "",
            "; ".join(a.name for a in pub.authors if a.name),
            pub.citation_count,
            len(pub.citing_works or []),
            pub.self_citation_count(1),
            pub.self_citation_count(2),
            pub.url or "",
        ])
    return rows


def _build_self_citation_rows(result: AnalysisResult) -> list[list]:
    """One row per citing work flagged by either method."""
    rows = []
    for pub in result.publications:
        for citing in pub.citing_works or []:
            verdict = classify(pub, citing, result.author.author_ids)
            if not (verdict.method1 or verdict.method2):
                continue
            rows.append([
                pub.paper_id,
                pub.title,
                citing.paper_id,
                citing.title or "",
                citing.year,
                verdict.method1,
                verdict.method2,
            ])
    return rows


# ── CSV Export ───────────────────────────────────────────────────────


def export_publications_csv(
    result: AnalysisResult, output_path: str, sort_by: SortKey = "self_citations"
) -> None:
    """Export the publication table as CSV."""
    rows = _build_publication_rows(result, sort_by)

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(HEADERS)
        writer.writerows(rows)

    logger.info("Publications CSV exported to %s (%d rows)", output_path, len(rows))


# ── Excel Export ─────────────────────────────────────────────────────


def export_publications_excel(
    result: AnalysisResult, output_path: str, sort_by: SortKey = "self_citations"
) -> None:
    """Export an Excel workbook with 3 sheets: publications, self-citations, metrics."""
    wb = openpyxl.Workbook()

    ws1 = wb.active
    ws1.title = "Publications"
    ws1.append(HEADERS)
    for row in _build_publication_rows(result, sort_by):
        ws1.append(row)
    _style_header(ws1)

    ws2 = wb.create_sheet("Self-Citations")
    ws2.append([
        "paper_id", "title", "citing_paper_id", "citing_title",
        "citing_year", "method1", "method2",
    ])
    for row in _build_self_citation_rows(result):
        ws2.append(row)
    _style_header(ws2)

    ws3 = wb.create_sheet("Metrics")
    ws3.append(["metric", "value"])
    for name, value in result.metrics.model_dump().items():
        ws3.append([name, value])
    _style_header(ws3)

    wb.save(output_path)
    logger.info("Publications Excel exported to %s", output_path)


def _style_header(ws) -> None:
    """Bold the header row."""
    from openpyxl.styles import Font
    for cell in ws[1]:
        cell.font = Font(bold=True)
