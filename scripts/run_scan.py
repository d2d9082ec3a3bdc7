#!/usr/bin/env python
"""Run a single AI visibility scan from the command line.

Creates a scan record, runs the full pipeline (page fetch, five pillars,
ranking) and prints the score breakdown and recommendations.

Usage:
    python scripts/run_scan.py https://example.com
    python scripts/run_scan.py example.com --tier diy --json report.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, ".")


def print_report(report, tier: str) -> None:
    """Print the score breakdown and ranked recommendations."""
    from scanner.fixes.ranker import quick_wins, rank_recommendations, total_recoverable_points

    print(report.breakdown.show_the_math())
    print(f"\nFinal URL: {report.final_url}")
    print(f"Detected schema types: {', '.join(report.detected_schemas) or 'None'}")
    nap = report.nap_data
    print(
        f"NAP ({nap.get('source')}): {nap.get('name') or '-'} | "
        f"{nap.get('address') or '-'} | {nap.get('phone') or '-'}"
    )

    recommendations = rank_recommendations(report.results.values(), tier)
    print(f"\n{'-'*60}")
    print(
        f"RECOMMENDATIONS ({tier} tier, "
        f"{total_recoverable_points(recommendations)} points recoverable)"
    )
    print(f"{'-'*60}")
    for i, rec in enumerate(recommendations, 1):
        print(
            f"{i}. {rec.title} [+{rec.points_recoverable}, {rec.impact.value} impact, "
            f"{rec.difficulty.value}]"
        )
        print(f"   {rec.description}")
        if rec.how_to_fix:
            print(f"   Fix: {rec.how_to_fix}")

    wins = quick_wins(recommendations)
    if wins:
        print(f"\nQuick wins: {', '.join(rec.title for rec in wins)}")
    print(f"\nCompleted in {report.duration_ms}ms")


async def main():
    from scanner.tasks.scan import run_scan
    from service.config import get_settings
    from service.database import create_all
    from service.exceptions import InvalidURLError
    from service.logging import setup_logging
    from service.services.scan_service import normalize_url, validate_url
    from service.store import SqlScanStore

    parser = argparse.ArgumentParser(description="Run an AI visibility scan on one URL")
    parser.add_argument("url", help="Website URL to scan")
    parser.add_argument(
        "--tier",
        choices=["free", "monitoring", "diy", "pro"],
        default="pro",
        help="Recommendation tier to display (default: pro)",
    )
    parser.add_argument(
        "--json",
        type=str,
        default=None,
        help="Write the full report as JSON to this path",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create database tables before scanning",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL from settings)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of console output",
    )

    args = parser.parse_args()

    setup_logging(args.log_level, json_logs=args.json_logs or None)
    settings = get_settings()

    try:
        url = validate_url(args.url)
    except InvalidURLError as e:
        print(f"Error: {e.message}")
        sys.exit(2)

    if args.create_tables:
        await create_all()

    store = SqlScanStore()
    scan = await store.create_scan(url, normalize_url(url))

    print(f"\n{'='*60}")
    print(f"Scanning {url} (scan {scan.id})")
    print(f"{'='*60}\n")

    try:
        report = await run_scan(scan.id, url, store=store, settings=settings)
    except Exception as e:
        failed = await store.get_scan(scan.id)
        print(failed.error_message if failed and failed.error_message else f"Scan failed: {e}")
        sys.exit(1)

    print_report(report, args.tier)

    if args.json:
        output_path = Path(args.json)
        output_path.write_text(json.dumps(report.to_dict(), indent=2, default=str))
        print(f"Report written to {output_path}")


if __name__ == "__main__":
    asyncio.run(main())
