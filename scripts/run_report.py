"""Command-line entry point for the trial summary report."""
from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from trial_summary.config import DEFAULT_CONFIG, GroupingStrategy, ReportConfig, SiteIdRange
from trial_summary.errors import ReportError
from trial_summary.observability.logger import configure_logging
from trial_summary.observability.reporting import format_percent, persist_summary
from trial_summary.orchestration.pipeline import ReportPipeline


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Shigella vaccine trial summary report")
    parser.add_argument("participants_path", help="Path to the CSV/Excel participant (enrollment/visit) file")
    parser.add_argument("events_path", help="Path to the CSV/Excel diarrheal event (laboratory) file")
    parser.add_argument(
        "--log",
        dest="log_path",
        default=None,
        help="Optional path for JSONL execution logs",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log skipped rows and reconciliation decisions",
    )
    parser.add_argument(
        "--report-json",
        dest="report_json",
        default=None,
        help="Optional path to store the summary as JSON",
    )
    parser.add_argument(
        "--grouping",
        choices=[strategy.value for strategy in GroupingStrategy],
        default=DEFAULT_CONFIG.grouping.value,
        help="Episode grouping strategy; 'auto' picks by the events file's columns",
    )
    parser.add_argument(
        "--header-scan-rows",
        dest="header_scan_rows",
        type=int,
        default=DEFAULT_CONFIG.header_scan_rows,
        help="Number of leading rows searched for the header row",
    )
    parser.add_argument(
        "--site-range",
        dest="site_ranges",
        action="append",
        default=[],
        metavar="LOW-HIGH=SITE",
        help="Attribute randomization numbers in LOW-HIGH to SITE when unmapped (repeatable)",
    )
    return parser.parse_args(argv)


def parse_site_range(text: str) -> SiteIdRange:
    bounds, _, site_name = text.partition("=")
    low, _, high = bounds.partition("-")
    if not site_name.strip() or not low.strip().isdigit() or not high.strip().isdigit():
        raise argparse.ArgumentTypeError(f"Invalid site range '{text}'; expected LOW-HIGH=SITE")
    return SiteIdRange(int(low), int(high), site_name.strip())


def build_config(args: argparse.Namespace) -> ReportConfig:
    return replace(
        DEFAULT_CONFIG,
        grouping=GroupingStrategy(args.grouping),
        header_scan_rows=args.header_scan_rows,
        site_id_ranges=tuple(parse_site_range(item) for item in args.site_ranges),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_path, logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger("runner")

    try:
        config = build_config(args)
    except argparse.ArgumentTypeError as exc:
        logger.error(str(exc))
        return 2

    pipeline = ReportPipeline(config=config, logger=logging.getLogger("pipeline"))
    try:
        summary = pipeline.run(Path(args.participants_path), Path(args.events_path))
    except ReportError as exc:
        logger.error("Report generation aborted: %s", exc, extra={"source": exc.source})
        return 2

    for site in (*summary.sites, summary.totals):
        logger.info(
            "%s: enrolled=%d events=%d (%s) dose1=%d/%d dose2=%d/%d dose2+30d=%d/%d",
            site.site_name,
            site.enrollment,
            site.total_diarrheal_events,
            format_percent(site.total_diarrheal_events, site.enrollment),
            site.after_1st_dose_culture_positive,
            site.after_1st_dose_events,
            site.after_2nd_dose_culture_positive,
            site.after_2nd_dose_events,
            site.after_30_days_2nd_dose_culture_positive,
            site.after_30_days_2nd_dose_events,
        )

    if summary.unmapped_events:
        logger.warning("%d episodes reference participants missing from the enrollment file", summary.unmapped_events)

    if args.report_json:
        persist_summary(summary, args.report_json)
        logger.info("Summary written", extra={"path": args.report_json})

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
