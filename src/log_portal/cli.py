"""Command-line entry point.

Usage:
    log-portal -u https://host/logs/access.log --enablefile -d ./mirror
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import ConfigurationError, env_bool, env_int, env_str, load_runtime_settings
from .logging_config import setup_logging
from .portal import Portal
from .service_runner import run_portal


EXIT_CONFIG_ERROR = 2


@dataclass(frozen=True)
class PortalOptions:
    url: str
    dir: str
    interval: int
    tail: int
    lifetime: int
    enable_file: bool
    disable_console: bool

    def validate(self) -> "PortalOptions":
        if not self.url:
            raise ConfigurationError("Please provide log file URL.")
        if self.interval <= 0:
            raise ConfigurationError("Please provide positive integer for interval option.")
        if self.tail < 0:
            raise ConfigurationError("Please provide non-negative integer for tail option.")
        if self.lifetime < 0:
            raise ConfigurationError("Please provide non-negative integer for lifetime option.")
        if not self.enable_file and self.disable_console:
            raise ConfigurationError("Please provide either --enablefile or enable console output.")
        if self.enable_file and not self.dir:
            raise ConfigurationError("Please provide file dir path.")
        return self


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-portal",
        description="Mirror a remote, HTTP-served log file to the console and/or local files.",
    )
    parser.add_argument("-u", "--url", default=env_str("LOG_PORTAL_URL", ""), help="Log file URL.")
    parser.add_argument(
        "-d",
        "--dir",
        default=env_str("LOG_PORTAL_DIR", ""),
        help="Local log dir path; mandatory and only used with --enablefile.",
    )
    parser.add_argument(
        "-i", "--interval", type=int, default=env_int("LOG_PORTAL_INTERVAL", 2), help="HTTP request interval in seconds."
    )
    parser.add_argument("-t", "--tail", type=int, default=env_int("LOG_PORTAL_TAIL", 0), help="Bytes read for the initial fetch.")
    parser.add_argument(
        "-l", "--lifetime", type=int, default=env_int("LOG_PORTAL_LIFETIME", 3), help="Local log files lifetime in days."
    )
    parser.add_argument(
        "--enablefile",
        action="store_true",
        default=env_bool("LOG_PORTAL_ENABLE_FILE", False),
        help="Enable writing the log into local files.",
    )
    parser.add_argument(
        "--disableconsole",
        action="store_true",
        default=env_bool("LOG_PORTAL_DISABLE_CONSOLE", False),
        help="Disable printing the log on the console.",
    )
    parser.add_argument("--log-level", default=None, help="Diagnostic log level (default: LOG_PORTAL_LOG_LEVEL or INFO).")
    return parser


def parse_options(argv: Optional[Sequence[str]] = None) -> tuple[PortalOptions, argparse.Namespace]:
    args = build_parser().parse_args(argv)
    options = PortalOptions(
        url=args.url.strip(),
        dir=args.dir.strip(),
        interval=args.interval,
        tail=args.tail,
        lifetime=args.lifetime,
        enable_file=args.enablefile,
        disable_console=args.disableconsole,
    )
    return options.validate(), args


def build_portal(options: PortalOptions) -> Portal:
    """Construct, initialize and wire a portal; any failure aborts before polling."""
    portal = Portal(options.url, options.interval, options.tail, settings=load_runtime_settings())
    portal.init()
    portal.setup_writer(options.disable_console, options.enable_file, options.dir, options.lifetime)
    return portal


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        options, args = parse_options(argv)
        setup_logging(args.log_level)
        portal = build_portal(options)
    except ConfigurationError as exc:
        sys.stderr.write(f"{exc}\n")
        return EXIT_CONFIG_ERROR

    run_portal(portal)
    return 0


__all__ = ["PortalOptions", "build_parser", "build_portal", "main", "parse_options"]
