#!/usr/bin/env python3
"""Container Log Notifier entry point."""

import argparse
import logging
import os
import signal
import sys
import threading

from log_notifier.app import run
from log_notifier.config import load_config, load_yaml_config
from log_notifier.errors import ConfigError, SetupError

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Container Log Notifier")
    parser.add_argument(
        "--config", default=os.environ.get("CONFIG_PATH", "config.json"),
        help="Path to JSON/YAML config file (default: config.json)",
    )
    parser.add_argument("--container-name", default=None, help="Container to read logs from")
    parser.add_argument("--webhook-url", default=None, help="Chat webhook endpoint")
    parser.add_argument("--log-dir", default=None, help="Host path to watch for writes")
    parser.add_argument("--log-file", default=None, help="Log file to read inside the container")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Log rendered messages instead of posting them",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_cli_parser().parse_args(argv)

    try:
        config = load_config(load_yaml_config(args.config), {
            "container_name": args.container_name,
            "webhook_url": args.webhook_url,
            "log_dir": args.log_dir,
            "log_file": args.log_file,
            "log_level": args.log_level,
        })
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR, stream=sys.stderr)
        logger.error("Configuration error: %s", e)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [NOTIFIER] %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )
    logger.info("Config: container=%s, log_dir=%s, log_file=%s",
                config.container_name, config.log_dir, config.log_file)

    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        run(config, shutdown_event, dry_run=args.dry_run)
    except SetupError as e:
        logger.error("Startup failed: %s", e)
        return 1

    logger.info("Container Log Notifier stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
