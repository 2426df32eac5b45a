import argparse
import logging
import sys

from telehealth_availability import run
from telehealth_availability.models import ToggleOutcome

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    import time

    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Manage a doctor's weekly availability slots.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the availability grid for a week.")
    show.add_argument("--week", type=int, default=0, help="Week offset from the current week. Defaults to 0.")

    toggle = subparsers.add_parser("toggle", help="Add or remove the slot at a grid position.")
    toggle.add_argument("--week", type=int, default=0, help="Week offset from the current week. Defaults to 0.")
    toggle.add_argument("--day", type=int, required=True, choices=range(7), help="Day index, 0 = Monday.")
    toggle.add_argument("--slot", type=int, required=True, help="Slot index within the day template.")
    return parser.parse_args(argv)


def main():
    args = parse_arguments()
    setup_logging(args.verbose)

    if args.command == "show":
        if run.show_week(week_offset=args.week) is None:
            sys.exit(1)
    elif args.command == "toggle":
        outcome = run.toggle(week_offset=args.week, day_index=args.day, slot_index=args.slot)
        if outcome in (ToggleOutcome.REJECTED, ToggleOutcome.FAILED):
            sys.exit(1)


if __name__ == "__main__":
    main()
