#!/usr/bin/env python3
"""Self-citation analysis runner."""

import argparse
import logging
import os
import signal
import sys
import threading
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import SecretStr, ValidationError

from selfcite.core.config import AnalysisConfig, load_config
from selfcite.core.errors import AnalysisCancelled, SelfCiteError
from selfcite.exporters import export_all
from selfcite.exporters.summary import generate_report
from selfcite.pipeline.orchestrator import AnalysisResult, analyze_self_citations

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("analysis")

DEFAULT_CONFIG = PROJECT_ROOT / "configs" / "default.yaml"


# ── Analysis ─────────────────────────────────────────────────────────


def run_analysis(
    author_ids: list[str],
    config: AnalysisConfig,
    output_dir: str | None = None,
    sort_by: str = "self_citations",
) -> AnalysisResult:
    """Run the analysis, print the report and optionally export files.

    The first Ctrl+C cancels between batches; a second one aborts.
    """
    cancel_event = threading.Event()

    def _on_sigint(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        logger.warning("Cancellation requested, stopping after the current batch")
        cancel_event.set()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        result = analyze_self_citations(
            author_ids,
            config=config,
            progress=_log_progress,
            cancel_event=cancel_event,
        )
    finally:
        signal.signal(signal.SIGINT, previous)

    print(generate_report(result))

    if output_dir:
        paths = export_all(result, output_dir, sort_by=sort_by)
        for name, path in paths.items():
            logger.info("  %s: %s", name, path)

    return result


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _non_negative_float(value: str) -> float:
    number = float(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def _log_progress(completed: int, total: int) -> None:
    if completed == total or completed % 10 == 0:
        logger.info("Fetched citations for %d/%d papers", completed, total)


# ── CLI ──────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Analyze self-citations of a Semantic Scholar author"
    )
    parser.add_argument(
        "author_ids",
        nargs="+",
        help="Semantic Scholar author ID(s); several IDs are merged into one author",
    )
    parser.add_argument("--config", default=str(DEFAULT_CONFIG), help="Path to config YAML file")
    parser.add_argument(
        "--batch-size", type=_positive_int, default=None, help="Publications per batch"
    )
    parser.add_argument(
        "--pause", type=_non_negative_float, default=None, help="Seconds between batches"
    )
    parser.add_argument("--output-dir", default=None, help="Write summary and tables here")
    parser.add_argument(
        "--sort-by",
        choices=("self_citations", "citations", "year"),
        default="self_citations",
        help="Row order of the publication tables",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ValidationError as exc:
        parser.error(f"invalid config {args.config}: {exc}")
    if args.batch_size is not None:
        config.pipeline.batch_size = args.batch_size
    if args.pause is not None:
        config.pipeline.batch_pause_s = args.pause
    if config.api.api_key is None and os.getenv("S2_API_KEY"):
        config.api.api_key = SecretStr(os.environ["S2_API_KEY"])

    try:
        run_analysis(args.author_ids, config, args.output_dir, args.sort_by)
    except AnalysisCancelled:
        logger.error("Analysis cancelled, no results produced")
        return 1
    except SelfCiteError as exc:
        logger.error("Analysis failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
