"""
Summarize brokerage asset balance CSVs from the command line.

Usage:
    asset-palette assets_husband.csv assets_wife.csv --name 夫 --name 妻
    asset-palette assets.csv --json > portfolio.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from asset_palette.core.exceptions import StatementError
from asset_palette.core.logging_config import setup_logging
from asset_palette.models.portfolio import PortfolioData
from asset_palette.schemas.portfolio import SessionResponse
from asset_palette.services.session_service import PortfolioSession, load_portfolios


class FileUpload:
    """A statement on disk, read the same way an uploaded file is."""

    def __init__(self, path: Path):
        self.path = path
        self.filename = path.name

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


def format_yen(value: int) -> str:
    return f"{value:,}円"


def _print_breakdown(title: str, items, total: int) -> None:
    print(f"  {title}")
    for item in items:
        print(f"    {item.name:<24} {format_yen(item.value):>16} {item.share(total):6.2f}%")


def print_portfolio(title: str, data: PortfolioData) -> None:
    print(f"== {title} ==")
    print(f"  総資産額 {format_yen(data.total_value)}  評価損益 {data.total_gain_loss:+,}円")
    _print_breakdown("資産クラス別", data.by_asset_class, data.total_value)
    _print_breakdown("口座別", data.by_account, data.total_value)
    _print_breakdown("保有銘柄別", data.by_holding, data.total_value)
    print()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Aggregate brokerage asset balance CSVs into portfolio summaries"
    )
    parser.add_argument("files", nargs="+", type=Path, help="Statement CSV files")
    parser.add_argument(
        "--name", action="append", default=[], dest="names",
        help="Portfolio label, one per file in order (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level)

    missing = [str(p) for p in args.files if not p.is_file()]
    if missing:
        print(f"Error: file not found: {', '.join(missing)}", file=sys.stderr)
        return 1

    try:
        portfolios = asyncio.run(
            load_portfolios([FileUpload(p) for p in args.files], args.names)
        )
    except StatementError as e:
        print(f"Error ({e.filename}): {e.cause}", file=sys.stderr)
        return 1

    session = PortfolioSession(portfolios)

    if args.json:
        document = SessionResponse.from_portfolios(portfolios, session.combined())
        print(json.dumps(document.model_dump(), ensure_ascii=False, indent=2))
        return 0

    if len(portfolios) > 1:
        print_portfolio("合算ポートフォリオ", session.combined())
    for portfolio in portfolios:
        print_portfolio(portfolio.name, portfolio.data)

    return 0


if __name__ == "__main__":
    sys.exit(main())
