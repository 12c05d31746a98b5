"""
Password server main application

Binds the listener and serves password requests until interrupted.
"""
import argparse
import asyncio
import sys

import structlog

from pwgen.config import load_settings, settings
from pwgen.engine.acceptor import ConnectionAcceptor
from pwgen.exceptions import ConfigurationError, TransportInitError
from pwgen.logging import setup_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Password generation server")
    parser.add_argument("--host", default=settings.host, help="Address to bind to")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind to")
    parser.add_argument(
        "--backlog",
        type=int,
        default=settings.backlog,
        help="Pending connections queued while a session is running",
    )
    parser.add_argument(
        "--concurrent",
        action="store_true",
        default=settings.concurrent_sessions,
        help="Serve each connection in its own task instead of one at a time",
    )
    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    try:
        setup_logging("server")
        config = load_settings(
            host=args.host,
            port=args.port,
            backlog=args.backlog,
            concurrent_sessions=args.concurrent,
        )
    except ConfigurationError as e:
        logger.error("server_config_invalid", error=e.message, error_type=type(e).__name__, **e.details)
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    acceptor = ConnectionAcceptor(config=config)

    try:
        asyncio.run(acceptor.run())
    except TransportInitError as e:
        logger.error("server_start_failed", error=e.message, **e.details)
        return 1
    except KeyboardInterrupt:
        logger.info("server_shutdown_requested")

    logger.info("server_stopped", sessions_served=acceptor.sessions_served)
    return 0


if __name__ == "__main__":
    sys.exit(main())
