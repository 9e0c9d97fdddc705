"""
CLI — Command interface

    gbat [options] project_root

Replays the history of every interesting file under project_root and
writes a knowledge / bus-risk summary into the output directory.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config, ConfigManager
from .errors import GbatError
from .pipeline import run_analysis
from . import __version__


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gbat",
        description="Git by a Bus -- estimate who understands each line and what is at risk",
    )

    # Input options
    parser.add_argument(
        '--interesting', '-I', action='append', default=None,
        help='Regular expression for files to include (repeatable)'
    )
    parser.add_argument(
        '--not-interesting', '-N', action='append', default=None,
        help='Regular expression for files to exclude (repeatable)'
    )
    parser.add_argument(
        '--case-sensitive', action='store_true', default=None,
        help='Use case sensitive regexps when selecting files (default is case-insensitive)'
    )
    parser.add_argument(
        '--departed-file', '-D',
        help='File listing departed devs, one per line'
    )
    parser.add_argument(
        '--bus-risk-file',
        help='File of dev=float lines (e.g. ejorgensen=0.4) with custom bus risks'
    )
    parser.add_argument(
        '--default-bus-risk', type=float,
        help='Risk that a dev is hit by a bus in the analysis timeframe (default: 0.1)'
    )

    # Parallelism
    parser.add_argument(
        '--num-analyzer-procs', type=int,
        help='Number of files analyzed concurrently (default: 3)'
    )

    # Tuning options
    parser.add_argument(
        '--risk-threshold', type=float,
        help='Joint risk at or below which knowledge is considered safe (default: default bus risk cubed)'
    )
    parser.add_argument(
        '--knowledge-creation-constant', type=float,
        help='Knowledge a changed line creates if a new line creates 1 (default: 0.1)'
    )

    # Misc options
    parser.add_argument(
        '--git-exe',
        help='Path to the git executable'
    )
    parser.add_argument(
        '--verbose', '-v', action='store_true',
        help='Print progress output'
    )
    parser.add_argument(
        '--output', '-o',
        help='Output directory for data files and summary (default: "output")'
    )
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'gbat {__version__}'
    )

    parser.add_argument('project_root', help='The root directory to inspect')
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Overlay command-line arguments on loaded configuration."""
    if args.interesting:
        config.files.interesting = list(args.interesting)
    if args.not_interesting:
        config.files.not_interesting = list(args.not_interesting)
    if args.case_sensitive:
        config.files.case_sensitive = True
    if args.departed_file is not None:
        config.risk.departed_file = args.departed_file
    if args.bus_risk_file is not None:
        config.risk.bus_risk_file = args.bus_risk_file
    if args.default_bus_risk is not None:
        config.risk.default_bus_risk = args.default_bus_risk
    if args.risk_threshold is not None:
        config.risk.risk_threshold = args.risk_threshold
    if args.num_analyzer_procs is not None:
        config.analysis.workers = args.num_analyzer_procs
    if args.knowledge_creation_constant is not None:
        config.analysis.creation_constant = args.knowledge_creation_constant
    if args.git_exe is not None:
        config.git.exe = args.git_exe
    if args.output is not None:
        config.output.directory = args.output
    return config


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the gbat CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    project_root = Path(args.project_root)
    if not project_root.is_dir():
        print(f"Error: project root does not exist: {project_root}", file=sys.stderr)
        return 1

    config = apply_args(ConfigManager(project_root).load(), args)
    if os.environ.get("GBAT_DEBUG"):
        logger.info("Configuration: %s", config.to_dict())

    try:
        report = run_analysis(project_root, config)
    except GbatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if report.failed:
        print(f"{len(report.failed)} file(s) could not be analyzed", file=sys.stderr)
    if report.summary_path:
        print(f"Done, summary is in {report.summary_path}", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
