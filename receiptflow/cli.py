"""Simple CLI to run provider JSON payloads through the receipt pipeline."""
import argparse
from pathlib import Path

from receiptflow.core.logging import configure_logging
from receiptflow.pipeline import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    """Create a small argument parser for the CLI entry point."""

    parser = argparse.ArgumentParser(description="Parse, enrich, and map OCR receipt payloads")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("dummy_data/receipts"),
        help="Directory holding provider JSON payloads",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("output/mapped_receipts.csv"),
        help="CSV file to write mapped rows to",
    )
    parser.add_argument(
        "--sink",
        choices=["csv", "excel"],
        default="csv",
        help="Where to forward mapped rows after writing the CSV",
    )
    parser.add_argument(
        "--excel-output",
        type=Path,
        default=Path("output/mapped_receipts.xlsx"),
        help="Excel file to write when --sink=excel",
    )
    parser.add_argument(
        "--log-level",
        help="Override the LOG_LEVEL environment variable",
    )
    return parser


def main() -> None:
    """Entrypoint for running the pipeline from the command line."""

    args = build_parser().parse_args()
    configure_logging(args.log_level)
    output_path = run_pipeline(
        args.data_dir,
        args.output,
        sink=args.sink,
        excel_path=args.excel_output,
    )
    print(f"Wrote {output_path}")


if __name__ == "__main__":
    main()
