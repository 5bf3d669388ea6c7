# ============================================================================
# CloudShift -- Migration CLI (cloudshift/tools/migrate.py)
# ============================================================================
#
# WHAT THIS FILE DOES (plain English):
#   Command-line front end for the migration. It assembles the run
#   settings (YAML config, env vars, flags), sets up logging, runs the
#   orchestrator with a live status line and prints the final summary.
#
#   This is the ONLY place that knows about argparse, YAML files or the
#   console. The migration core receives a frozen RunSettings and never
#   looks anything up on its own.
#
# HOW TO RUN IT:
#   python -m cloudshift.tools.migrate \
#       --source "C:\\Users\\me\\OneDrive - Old Company" \
#       --dest   "C:\\Users\\me\\OneDrive - New Company\\Imported"
#
#   Optional flags:
#     --dehydrate hydrated-only|all|none   (default: hydrated-only)
#     --skip-name NAME                     (repeatable, adds to the defaults)
#     --max-path-length 260
#     --hydrate-timeout 1800               (seconds per file)
#     --config my_config.yaml              (in <project-dir>/config/)
#     --log-dir logs
#     --quiet                              (no live status line)
#
# EXIT CODES:
#   0 = every file migrated or skipped
#   1 = finished, but some files failed (see the error list)
#   2 = could not start (bad settings, source root missing)
#
# INTERNET ACCESS: NONE
# ============================================================================

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from ..core.config import Config, RunSettings, build_run_settings, load_config
from ..core.exceptions import ConfigurationError, SourceRootMissingError
from ..core.orchestrator import MigrationOrchestrator
from ..monitoring.logger import get_app_logger, get_error_logger, initialize_logging
from ..monitoring.progress import ConsoleProgressReporter, NullProgressReporter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="cloudshift-migrate",
        description="CloudShift -- migrate files between cloud-synced folders "
                    "with hydration, size verification and resume",
    )
    p.add_argument("--source", help="Source root (absolute path)")
    p.add_argument("--dest", help="Destination root (absolute path)")
    p.add_argument(
        "--dehydrate", choices=["hydrated-only", "all", "none"],
        help="Return source files to cloud-only after migration "
             "(default: hydrated-only)",
    )
    p.add_argument(
        "--skip-name", action="append", default=[],
        help="File name to skip (case-insensitive, repeatable)",
    )
    p.add_argument("--max-path-length", type=int,
                   help="Reject paths at or above this length (default: 260)")
    p.add_argument("--hydrate-timeout", type=float,
                   help="Seconds to wait for one file to download (default: 1800)")
    p.add_argument("--project-dir", default=".",
                   help="Folder containing config/ (default: current folder)")
    p.add_argument("--config", default="default_config.yaml",
                   help="Config file name inside <project-dir>/config/")
    p.add_argument("--log-dir", help="Log folder (default: logs)")
    p.add_argument("--quiet", action="store_true",
                   help="Do not draw the live progress line")
    return p


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Command-line flags win over YAML and env vars."""
    if args.source:
        config.paths.source_root = args.source
    if args.dest:
        config.paths.dest_root = args.dest
    if args.dehydrate:
        config.migration.dehydrate_mode = args.dehydrate
    if args.skip_name:
        config.migration.skip_names = list(config.migration.skip_names) + list(args.skip_name)
    if args.max_path_length is not None:
        config.migration.max_path_length = args.max_path_length
    if args.hydrate_timeout is not None:
        config.migration.hydrate_timeout_seconds = args.hydrate_timeout
    if args.log_dir:
        config.logging.log_dir = args.log_dir
    return config


def print_banner(settings: RunSettings) -> None:
    print("=" * 70)
    print("  CLOUDSHIFT MIGRATION -- Starting")
    print("=" * 70)
    print(f"  Source:       {settings.source_root}")
    print(f"  Destination:  {settings.dest_root}")
    print(f"  Dehydrate:    {settings.dehydrate_mode.value}")
    print(f"  Max path:     {settings.max_path_length} chars")
    print(f"  Hydrate wait: {settings.hydrate_timeout_seconds:.0f}s per file")
    print("=" * 70)
    print()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = apply_overrides(load_config(args.project_dir, args.config), args)
    try:
        settings = build_run_settings(config)
    except ConfigurationError as e:
        print(f"  [FAIL] {e}", file=sys.stderr)
        for problem in e.problems:
            print(f"         - {problem}", file=sys.stderr)
        return 2

    initialize_logging(config.logging.log_dir, config.logging.console_level)
    get_error_logger("migration")
    logger = get_app_logger("migration")

    print_banner(settings)
    reporter = NullProgressReporter() if args.quiet else ConsoleProgressReporter()
    orchestrator = MigrationOrchestrator(settings, reporter=reporter, logger=logger)

    try:
        summary = orchestrator.run()
    except SourceRootMissingError as e:
        print(f"  [FAIL] {e}", file=sys.stderr)
        print(f"         Fix: {e.fix_suggestion}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\n  [INTERRUPTED] Re-run to resume; finished files will be skipped.")
        return 1

    print(summary.full_report())
    return 0 if summary.errored == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
