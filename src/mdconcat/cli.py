"""
CLI entrypoint for mdconcat package.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .core import ConcatConfig, MdConcatError, run
from .tokens import format_report

logger = logging.getLogger("mdconcat")


class ColorFormatter(logging.Formatter):
    """Color whole log lines by level when writing to a terminal."""

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, fmt: str, use_color: bool = True):
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno, "") if self.use_color else ""
        if color:
            message = f"{color}{message}{Style.RESET_ALL}"
        return message


def _setup_logging(level: int) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColorFormatter("[mdconcat] %(message)s", use_color=sys.stderr.isatty()))
    logger.handlers[:] = [handler]
    logger.setLevel(level)


def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="mdconcat",
        description=(
            "Concatenate files with the given extensions into one Markdown file, "
            "one fenced code block per file."
        ),
    )
    p.add_argument("output_file", type=Path, help="Output Markdown file")
    p.add_argument(
        "--extensions",
        type=_csv,
        action="extend",
        required=True,
        help='Comma-separated extensions to include (e.g. "c,h,rs")',
    )
    p.add_argument(
        "--input-dirs",
        type=_csv,
        action="extend",
        help="Comma-separated directories to search (default: current directory)",
    )
    p.add_argument(
        "--exclude-dirs",
        type=_csv,
        action="extend",
        default=[],
        help='Comma-separated directory names to skip (e.g. "target,.git,build")',
    )
    p.add_argument(
        "--no-gitignore",
        dest="respect_gitignore",
        action="store_false",
        help="Do not honor .gitignore files",
    )
    p.add_argument(
        "--additional-gitignore",
        type=_csv,
        action="extend",
        default=[],
        help="Comma-separated extra ignore files applied to every input directory",
    )
    verbosity = p.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    ns = _parse_args(argv)
    just_fix_windows_console()
    if ns.verbose:
        _setup_logging(logging.DEBUG)
    elif ns.quiet:
        _setup_logging(logging.WARNING)
    else:
        _setup_logging(logging.INFO)

    try:
        config = ConcatConfig(
            output=ns.output_file,
            extensions=tuple(ns.extensions),
            roots=tuple(Path(d) for d in ns.input_dirs or ["."]),
            exclude_dirs=frozenset(ns.exclude_dirs),
            respect_gitignore=ns.respect_gitignore,
            extra_ignore_files=tuple(Path(f) for f in ns.additional_gitignore),
        )
        stats = run(config)
    except MdConcatError as e:
        logger.error("Error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(130)

    print(f"Successfully concatenated {stats.files_included} files into {ns.output_file}")
    if stats.files_skipped:
        print(f"Skipped {stats.files_skipped} unreadable files")
    print()
    print(format_report(stats.characters, stats.words))


if __name__ == "__main__":
    main()
