"""CLI entrypoints for wextrunk commands."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Mapping

from .config import ENV_SOURCE_DIR, ENV_STAGING_DIR, ConfigError, WextrunkConfig, load_config
from .debug_split import DebugSplitter
from .errors import PipelineError
from .logging import configure_logging
from .models import BuildTarget
from .orchestrator import Pipeline


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_staging_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "staging_dir",
        nargs="?",
        default=None,
        help=f"Bundler output directory (defaults to ${ENV_STAGING_DIR}).",
    )
    parser.add_argument(
        "--source-dir",
        default=None,
        help=f"Project source directory holding manifests and .wextrunk.yml (defaults to ${ENV_SOURCE_DIR} or cwd).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wextrunk",
        description="Post-process bundler output into a browser extension layout.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Split index.html into extension pages, shims and a manifest.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_staging_argument(build_parser)
    build_parser.add_argument(
        "--target",
        choices=sorted(BuildTarget.identifiers()),
        default=None,
        help="Browser to package for (overrides WEXTRUNK_TARGET).",
    )
    build_parser.add_argument(
        "--keep-index",
        action="store_true",
        help="Leave the bundler's index.html in place after the build.",
    )
    build_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of surfaces rendered concurrently.",
    )

    split_parser = subparsers.add_parser(
        "split-debug",
        help="Split DWARF info out of the wasm binary for the dev server.",
    )
    _add_verbose_option(split_parser, suppress_default=True)
    _add_staging_argument(split_parser)

    return parser


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> None:
    """CLI entrypoint for wextrunk commands."""
    env = os.environ if environ is None else environ
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    staging_value = args.staging_dir or env.get(ENV_STAGING_DIR)
    if not staging_value:
        parser.exit(1, f"No staging directory given and ${ENV_STAGING_DIR} is not set.\n")
    staging_dir = Path(staging_value)
    source_dir = Path(args.source_dir or env.get(ENV_SOURCE_DIR) or ".")

    try:
        config = load_config(source_dir, environ=env)
    except ConfigError as exc:
        parser.exit(1, f"wextrunk: invalid configuration: {exc}\n")

    if args.command == "build":
        _apply_build_flags(parser, config, args)
        try:
            report = Pipeline(config).run(staging_dir)
        except PipelineError as exc:
            kind = exc.__class__.__name__
            parser.exit(1, f"wextrunk build failed ({kind} during {exc.stage}): {exc}\n")
        target = report.target.value if report.target else "default target"
        print(f"Built {len(report.surfaces)} surface(s) for {target} in {report.elapsed:.3f}s")
    elif args.command == "split-debug":
        try:
            result = DebugSplitter(config.serve).split(staging_dir)
        except PipelineError as exc:
            parser.exit(1, f"wextrunk split-debug failed: {exc}\n")
        print(f"Debug info written to {result.debug.name} ({result.debug_url})")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _apply_build_flags(
    parser: argparse.ArgumentParser, config: WextrunkConfig, args: argparse.Namespace
) -> None:
    if args.target:
        config.target = BuildTarget.parse(args.target)
    if args.keep_index:
        config.keep_index = True
    if args.workers is not None:
        if args.workers < 1:
            parser.exit(1, "--workers must be a positive integer\n")
        config.workers = args.workers


if __name__ == "__main__":
    main(sys.argv[1:])
