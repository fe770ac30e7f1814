"""
Tsrc Command Line.

Parses options, layers them over the environment settings and runs
the build orchestrator.
Requires Python 3.11+.

Usage:
    tsrc --watch --ignore node_modules --module commonjs
"""

import argparse
import sys
import traceback
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from orchestrator.build_orchestrator import BuildOrchestrator
from orchestrator.lifecycle import ProcessLifecycleGuard
from utils.config import (
    SUPPORTED_MODULES,
    SUPPORTED_TARGETS,
    BuildSettings,
    CompilerSettings,
    LoggingSettings,
    Settings,
    WatcherSettings,
    get_settings,
)
from utils.errors import BuildError
from utils.logger import configure_logging, get_logger


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def build_parser(defaults: Settings) -> argparse.ArgumentParser:
    """Build the argument parser, using settings for default values."""
    parser = argparse.ArgumentParser(
        prog="tsrc",
        description="Compile TypeScript sources, optionally recompiling as they change",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {defaults.app_version}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print additional information about program operation",
    )
    parser.add_argument(
        "--watch",
        action=argparse.BooleanOptionalAction,
        default=defaults.watcher.enabled,
        help="Watch the filesystem for changes to relevant files. "
        "Will not exit if errors are encountered",
    )
    parser.add_argument(
        "--watch-timeout",
        type=int,
        metavar="MS",
        default=defaults.watcher.debounce_delay_ms,
        help="Milliseconds to wait for additional file changes before "
        "recompiling (default: %(default)s)",
    )
    parser.add_argument(
        "--monitor-parent",
        action=argparse.BooleanOptionalAction,
        default=defaults.watcher.monitor_parent,
        help="Terminate when the process that spawned this one does",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="PATH",
        default=None,
        help="Directory to be ignored; specify multiple times if desired",
    )
    parser.add_argument(
        "--target",
        type=str.upper,
        choices=SUPPORTED_TARGETS,
        default=defaults.compiler.target,
        help="ECMAScript target version (default: %(default)s)",
    )
    parser.add_argument(
        "--source-map",
        type=_parse_bool,
        nargs="?",
        const=True,
        metavar="BOOL",
        default=defaults.compiler.source_map,
        help="Generate corresponding .js.map files (default: %(default)s)",
    )
    parser.add_argument(
        "--module",
        choices=SUPPORTED_MODULES,
        default=defaults.compiler.module,
        help="Module code generation",
    )
    parser.add_argument(
        "--timestamp",
        action=argparse.BooleanOptionalAction,
        default=defaults.logging.timestamp,
        help="Prefix all logged output with a timestamp",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=defaults.build.root,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--compiler",
        default=defaults.compiler.executable,
        metavar="EXE",
        help="Compiler executable (default: %(default)s)",
    )
    return parser


def settings_from_args(args: argparse.Namespace, defaults: Settings) -> Settings:
    """
    Layer parsed command line options over the given settings.

    Each section is validated again, so out-of-range values fail here.

    Raises:
        ValidationError: if an option value is rejected by the settings model
    """
    ignore = list(defaults.build.ignore)
    if args.ignore:
        ignore.extend(args.ignore)

    watcher = WatcherSettings.model_validate(
        defaults.watcher.model_dump()
        | {
            "enabled": args.watch,
            "debounce_delay_ms": args.watch_timeout,
            "monitor_parent": args.monitor_parent,
        }
    )
    build = BuildSettings.model_validate(
        defaults.build.model_dump() | {"root": args.root, "ignore": ignore}
    )
    compiler = CompilerSettings.model_validate(
        defaults.compiler.model_dump()
        | {
            "executable": args.compiler,
            "target": args.target,
            "module": args.module,
            "source_map": args.source_map,
        }
    )
    log_settings = LoggingSettings.model_validate(
        defaults.logging.model_dump()
        | {
            "timestamp": args.timestamp,
            "level": "DEBUG" if args.debug else defaults.logging.level,
        }
    )
    return defaults.model_copy(
        update={"watcher": watcher, "build": build, "compiler": compiler, "logging": log_settings}
    )


def _describe_invalid(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}" for item in error.errors()
    )


def report_error(log: Any, error: BaseException) -> None:
    """Log an exception and every cause chained to it."""
    current: BaseException | None = error
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        message = str(current) or current.__class__.__name__
        log.error("error", message=message, type=current.__class__.__name__)
        log.debug(
            "traceback",
            trace="".join(traceback.format_tb(current.__traceback__)),
        )
        current = current.__cause__ or current.__context__


def run(settings: Settings, log: Any | None = None) -> int:
    """
    Run a build with the given settings.

    Returns:
        Process exit status
    """
    log = log or get_logger("tsrc")
    try:
        guard = (
            ProcessLifecycleGuard.for_parent(logger=log)
            if settings.watcher.monitor_parent
            else ProcessLifecycleGuard(logger=log)
        )
        BuildOrchestrator(settings, guard=guard, logger=log).run()
    except BuildError as e:
        report_error(log, e)
        return e.status_code
    except KeyboardInterrupt:
        log.warning("cancelled_by_user")
        return 1
    except Exception as e:
        report_error(log, e)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    defaults = get_settings()
    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    try:
        settings = settings_from_args(args, defaults)
    except ValidationError as e:
        parser.error(_describe_invalid(e))

    configure_logging(settings)
    log = get_logger("tsrc")
    log.debug("operating_parameters", **settings.model_dump(mode="json"))

    return run(settings, log)


if __name__ == "__main__":
    sys.exit(main())
