#!/usr/bin/env python3
# Nonprofit Ingest - Import Preview Runner
# ========================================
# Parses an export file and prints the schema mapping preview as JSON
"""
Import Preview Runner

Reads a CSV, Excel or SQL export, infers column types and prints the
suggested mapping onto the CRM schema:
1. Resolves the format from --format, the file extension or the content
2. Parses the file into datasets
3. Scores every dataset against the schema registry
4. Writes the JSON preview to stdout or --output

Usage:
    python scripts/preview_import.py data/donors.csv

    # Semicolon export without a header row
    python scripts/preview_import.py data/gifts.txt --format csv --delimiter ";" --no-header

    # One sheet of a workbook, custom registry
    python scripts/preview_import.py data/crm.xlsx --sheet Contacts --registry registry.json
"""

import sys
import json
import argparse
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nonprofit_ingest.exceptions import IngestError
from nonprofit_ingest.preview import preview_import

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_options(args: argparse.Namespace) -> dict:
    """Translate CLI arguments into ingest options."""
    path = Path(args.path)
    options = {
        "filename": path.name,
        "name": args.name or path.stem,
        "has_header": "auto" if args.header is None else args.header,
        "delimiter": args.delimiter,
    }
    if args.format:
        options["format"] = args.format
    if args.sheet:
        options["sheet_name"] = args.sheet
    if args.max_rows:
        options["max_rows"] = args.max_rows
        options["max_sample_rows"] = args.max_rows
    return options


def print_summary(result) -> None:
    """Log the best table per dataset."""
    for suggestion in result.schema_suggestions:
        best = suggestion.best_table
        if best is None:
            logger.info(f"{suggestion.dataset_name}: no matching table")
            continue
        logger.info(f"{suggestion.dataset_name}: {best.table} "
                    f"(score={best.score:.2f}, coverage={best.coverage:.0%})")
        for source, target in best.suggested_mapping.items():
            logger.info(f"  {source} -> {target}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Preview how an export maps onto the CRM schema",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/preview_import.py donors.csv                       # Auto-detect everything
  python scripts/preview_import.py dump.sql --output preview.json   # Write JSON to a file
  python scripts/preview_import.py crm.xlsx --sheet Contacts        # Single sheet
        """
    )

    parser.add_argument("path", help="Export file to preview")

    parser.add_argument(
        "--format",
        choices=["csv", "excel", "sql"],
        help="Force the input format"
    )

    parser.add_argument("--name", help="Dataset name (default: file stem)")

    parser.add_argument("--sheet", help="Only preview this workbook sheet")

    parser.add_argument(
        "--delimiter",
        default="auto",
        help="CSV delimiter, or 'auto' to detect"
    )

    header = parser.add_mutually_exclusive_group()
    header.add_argument(
        "--header",
        dest="header",
        action="store_const",
        const=True,
        help="First row is a header"
    )
    header.add_argument(
        "--no-header",
        dest="header",
        action="store_const",
        const=False,
        help="First row is data"
    )

    parser.add_argument(
        "--max-rows",
        type=int,
        help="Row cap (CSV/Excel rows, SQL sample rows)"
    )

    parser.add_argument("--registry", help="Schema registry JSON file")

    parser.add_argument("--output", help="Write the JSON preview here instead of stdout")

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    path = Path(args.path)
    if not path.exists():
        logger.error(f"File not found: {path}")
        sys.exit(1)

    if args.delimiter == "\\t":
        args.delimiter = "\t"

    try:
        result = preview_import(
            path.read_bytes(),
            options=build_options(args),
            registry=args.registry,
        )
    except IngestError as e:
        logger.error(str(e))
        sys.exit(1)

    print_summary(result)

    payload = json.dumps(result.to_dict(), indent=2, default=str)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        logger.info(f"Preview written to {args.output}")
    else:
        print(payload)

    sys.exit(0)


if __name__ == "__main__":
    main()
