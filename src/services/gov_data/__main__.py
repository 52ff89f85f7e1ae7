"""CLI for refreshing registry data from government sources.

Usage::

    # Import open independent schools from the GIAS register
    python -m src.services.gov_data refresh-gias
    python -m src.services.gov_data refresh-gias --la "Kent" --force

    # Rebuild the Companies House cache (needs CH_API_KEY)
    python -m src.services.gov_data enrich-ch
    python -m src.services.gov_data enrich-ch --urn 123456
"""

from __future__ import annotations

import argparse
import logging
import sys

from src.services.gov_data.companies_house import CompaniesHouseEnrichmentService
from src.services.gov_data.gias import GIASService

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m src.services.gov_data",
        description="Refresh assessment registry data from UK government sources.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gias = sub.add_parser("refresh-gias", help="Import independent schools from the GIAS register")
    gias.add_argument("--la", default=None, help='Restrict to one local authority, e.g. "Kent".')
    gias.add_argument("--force", action="store_true", help="Force re-download, bypassing cache.")
    gias.add_argument("--db", default=None, help="Override database path.")

    ch = sub.add_parser("enrich-ch", help="Rebuild the Companies House cache")
    ch.add_argument("--urn", default=None, help="Enrich a single school.")
    ch.add_argument("--db", default=None, help="Override database path.")
    ch.add_argument("--out", default=None, help="Override cache file path.")

    return parser.parse_args(argv)


def _print_stats(title: str, stats: dict[str, int]) -> None:
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")
    for key, value in stats.items():
        print(f"  {key}: {value}")


def main(argv: list[str] | None = None) -> int:
    _setup_logging()
    args = _parse_args(argv)

    try:
        if args.command == "refresh-gias":
            stats = GIASService().import_independent_schools(
                la_name=args.la, force_download=args.force, db_path=args.db
            )
            _print_stats("GIAS - Independent school register", stats)
        elif args.command == "enrich-ch":
            stats = CompaniesHouseEnrichmentService().enrich(urn=args.urn, db_path=args.db, cache_path=args.out)
            _print_stats("Companies House - cache enrichment", stats)
    except (ValueError, RuntimeError) as exc:
        logger.exception("%s failed", args.command)
        print(f"\n  ERROR: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
