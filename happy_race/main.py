"""
Main entry point for happy-race.
"""

import argparse
import json
import sys

from happy_race.race.catalog import CatalogBuilder, build_catalog
from happy_race.utils.config import get_settings
from happy_race.utils.errors import RaceError
from happy_race.utils.logging import configure_logging, get_logger


def _split_cases(value: str) -> list[str]:
    return [name.strip() for name in value.split(",") if name.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="happy-race",
        description="happy-race - dual-stack connection race scenario generator",
    )
    parser.add_argument(
        "command",
        choices=["list", "describe"],
        help="Command to run",
    )
    parser.add_argument(
        "names",
        nargs="*",
        help="Scenario names (for 'describe' command)",
    )
    parser.add_argument(
        "--cases",
        type=_split_cases,
        default=[],
        help="Limit test cases to these comma-separated domain names",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print scenario descriptors as JSON",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = _build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(
        log_level=args.log_level or settings.general.log_level,
        json_format=False,
    )
    logger = get_logger(__name__)

    try:
        if args.command == "list":
            planned = build_catalog(args.cases)
            if args.json:
                print(json.dumps([case.to_dict() for case in planned], indent=2))
            else:
                for case in planned:
                    print(case.name)

        elif args.command == "describe":
            if not args.names:
                print("Error: at least one scenario name is required for describe", file=sys.stderr)
                return 1
            catalog = CatalogBuilder.from_settings().build()
            for name in args.names:
                case = catalog.get(name)
                if args.json:
                    print(json.dumps(case.to_dict(), indent=2))
                else:
                    descriptor = case.descriptor()
                    print(case.description)
                    print(f"  winner family:     IPv{descriptor.winner_family}")
                    print(f"  winner address:    {descriptor.winner_address}")
                    print(f"  min response time: {descriptor.min_response_time}ms")
                    print(f"  merged trace:      {'.'.join(map(str, case.winning_path().trace))}")

    except RaceError as e:
        logger.error("Scenario generation failed", error_code=e.code.value)
        print(e.message, file=sys.stderr)
        return 2

    return 0


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
