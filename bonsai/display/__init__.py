"""Terminal dashboard service."""

import argparse
import asyncio
import logging
import sys

from .scheduler import RefreshScheduler, SchedulerState, StateCell
from .terminal_monitor import TerminalMonitor


def main(argv=None):
    """Entry point for the dashboard."""
    from bonsai.shared.config import load_config
    from bonsai.shared.errors import ConfigurationError
    from bonsai.shared.logging import setup_logging
    from bonsai.shared.models import DisplayStatus

    from .service import DashboardService

    parser = argparse.ArgumentParser(description="Bonsai sensor dashboard")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--once", action="store_true", help="Refresh once, print and exit")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    try:
        service = DashboardService(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.once:
        state = asyncio.run(service.run_once())
        return 1 if state.status is DisplayStatus.ERROR else 0

    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    return 0


__all__ = ["RefreshScheduler", "SchedulerState", "StateCell", "TerminalMonitor", "main"]
