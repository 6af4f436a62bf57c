"""Export convenience function."""

import logging
from pathlib import Path

from selfcite.analysis.metrics import SortKey
from selfcite.exporters.publications_table import (
    export_publications_csv,
    export_publications_excel,
)
from selfcite.exporters.summary import export_report_md, export_summary_json
from selfcite.pipeline.orchestrator import AnalysisResult

logger = logging.getLogger(__name__)


def export_all(
    result: AnalysisResult,
    output_dir: str,
    sort_by: SortKey = "self_citations",
) -> dict:
    """Run all exports and return dict of file paths created."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = {}

    summary_path = str(out / "summary.json")
    export_summary_json(result, summary_path)
    paths["summary_json"] = summary_path

    report_path = str(out / "report.md")
    export_report_md(result, report_path)
    paths["report_md"] = report_path

    csv_path = str(out / "publications.csv")
    export_publications_csv(result, csv_path, sort_by)
    paths["publications_csv"] = csv_path

    xlsx_path = str(out / "publications.xlsx")
    export_publications_excel(result, xlsx_path, sort_by)
    paths["publications_xlsx"] = xlsx_path

    logger.info("All exports written to %s", output_dir)
    return paths
