import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo

from .config import load_config
from .loader import ScheduleError, load_schedule
from .logging_utils import new_run_id, set_run_id, setup_logging
from .render import render_json, render_text
from .showtimes import Mode, find_showtimes, next_hour_only, strategy_for

OUTPUT_FORMATS = ("text", "json")


def _warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def build_parser(prog: Optional[str] = None, with_mode: bool = True) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="List upcoming Alamo Drafthouse showtimes from the schedule feed.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="FILE",
        help="schedule JSON file; fetched from the network when omitted",
    )
    parser.add_argument(
        "--output",
        nargs="?",
        const=None,
        default="text",
        metavar="{text,json}",
        help="output format (default: text)",
    )
    parser.add_argument(
        "--search",
        default=None,
        help="only list movies whose title contains this text",
    )
    parser.add_argument(
        "--next-hour",
        action="store_true",
        help="only list showings starting within the next hour",
    )
    if with_mode:
        parser.add_argument(
            "--mode",
            choices=[m.value for m in Mode],
            default=None,
            help="which showings to list; raw lists every session (default: recent)",
        )
    return parser


def parse_args(
    argv: Sequence[str],
    default_mode: Mode = Mode.RECENT,
    prog: Optional[str] = None,
    with_mode: bool = True,
) -> argparse.Namespace:
    parser = build_parser(prog=prog, with_mode=with_mode)
    args, unknown = parser.parse_known_args(list(argv))

    paths: List[str] = list(args.paths)
    for extra in unknown:
        # argparse strands positionals that follow an unknown flag
        if extra.startswith("-"):
            _warn(f"Unknown flag '{extra}'")
        else:
            paths.append(extra)

    if args.output is None:
        _warn("--output flag requires a value, defaulting to 'text'")
        args.output = "text"
    elif args.output not in OUTPUT_FORMATS:
        _warn(f"Unknown output format '{args.output}', defaulting to 'text'")
        args.output = "text"

    for ignored in paths[1:]:
        _warn(f"Ignoring extra file argument '{ignored}'")
    args.path = Path(paths[0]) if paths else None

    mode = getattr(args, "mode", None)
    args.mode = Mode(mode) if mode else default_mode
    return args


def run(
    argv: Optional[Sequence[str]] = None,
    default_mode: Mode = Mode.RECENT,
    prog: Optional[str] = None,
    with_mode: bool = True,
    now: Optional[datetime] = None,
) -> int:
    cfg = load_config()
    setup_logging(cfg.log_level)
    set_run_id(new_run_id())
    logger = logging.getLogger(__name__)

    args = parse_args(
        sys.argv[1:] if argv is None else argv,
        default_mode=default_mode,
        prog=prog,
        with_mode=with_mode,
    )
    logger.info(
        "run_start mode=%s output=%s path=%s",
        args.mode.value,
        args.output,
        args.path or "",
    )

    try:
        schedule = load_schedule(args.path, cfg)
    except ScheduleError as exc:
        logger.debug("schedule_load_failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    strategy = strategy_for(args.mode, cfg)
    if args.next_hour:
        strategy = next_hour_only(strategy)

    selection = find_showtimes(
        schedule,
        strategy,
        ZoneInfo(cfg.timezone),
        now=now,
        search=args.search,
    )

    if args.output == "json":
        print(render_json(selection))
    else:
        print(render_text(selection))
    return 0


def main() -> None:
    sys.exit(run())


def open_caption_main() -> None:
    sys.exit(run(default_mode=Mode.OPEN_CAPTION, prog="drafthouse-open-caption", with_mode=False))


if __name__ == "__main__":
    main()
