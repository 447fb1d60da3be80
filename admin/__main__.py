"""Command line interface for administering the market board."""
import argparse
import asyncio
import logging

from config import load_settings, SettingsError
from context import AppContext
from sources import SourceExistsError
from . import add_source, ban_uploader, upload_report

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="python -m admin",
        description="Market board administration",
    )
    parser.add_argument(
        "--settings",
        type=str,
        help="Directory containing settings.conf",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    source_parser = subparsers.add_parser("add-source", help="Register a trusted source")
    source_parser.add_argument("name", type=str, help="Source name")
    source_parser.add_argument(
        "--key",
        type=str,
        help="API key to assign (generated if not specified)",
    )

    ban_parser = subparsers.add_parser("ban", help="Blacklist an uploader")
    ban_parser.add_argument("uploader_id", type=str, help="Uploader id")
    ban_parser.add_argument(
        "--hashed",
        action="store_true",
        help="The uploader id is already hashed",
    )

    stats_parser = subparsers.add_parser("stats", help="Show daily upload counts")
    stats_parser.add_argument(
        "--days",
        type=int,
        help="Number of days to show (default: all)",
    )

    return parser


async def run(args: argparse.Namespace) -> int:
    """Execute one command against a fresh application context."""
    try:
        settings = load_settings(args.settings)
    except SettingsError as e:
        print(e)
        return 1

    context = await AppContext.startup(settings)
    try:
        if args.command == "add-source":
            try:
                api_key = await add_source(context, args.name, args.key)
            except SourceExistsError as e:
                print(e)
                return 1
            print(f"API key for {args.name}: {api_key}")
        elif args.command == "ban":
            uploader_id = await ban_uploader(context, args.uploader_id, args.hashed)
            print(f"Banned {uploader_id}")
        elif args.command == "stats":
            for day in await upload_report(context, args.days):
                print(f"{day['date']}: {day['count']}")
    finally:
        await context.shutdown()
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        return 0
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
