"""
Interactive password client

Connects to the password server, shows its menu and forwards each typed
"<type> [length]" line until the user sends q or input ends.
"""
import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable

import structlog

from pwclient.client import PasswordClient, parse_input_line
from pwclient.console import Console
from pwgen.config import settings
from pwgen.exceptions import (
    ConfigurationError,
    PasswordServiceError,
    SerializationError,
    TransportInitError,
)
from pwgen.logging import setup_logging
from pwgen.models import ResponseKind

logger = structlog.get_logger()

ReadLine = Callable[[], Awaitable[str]]


async def read_stdin_line() -> str:
    """Read one line from stdin without blocking the event loop ("" at EOF)."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, sys.stdin.readline)


async def run_interactive(
    client: PasswordClient,
    console: Console,
    read_line: ReadLine = read_stdin_line,
    default_length: str = "8",
) -> int:
    """
    Drive a connected client from user input.

    Returns:
        Number of passwords received
    """
    generated = 0
    while True:
        console.menu(client.menu.menu_text)
        line = await read_line()
        if line == "":
            console.notice("End of input, closing the connection.")
            await client.quit()
            return generated

        parsed = parse_input_line(line, default_length)
        if parsed is None:
            console.warning("Invalid input. Please enter a valid type and length.")
            continue
        if parsed.used_default:
            console.notice(f"(The length is absent, a default value is used: {default_length})")

        try:
            response = await client.request(parsed.selector, parsed.length_text)
        except SerializationError:
            console.warning("Invalid input. Please enter a valid type and length.")
            continue

        if response.kind is ResponseKind.CLOSE:
            break
        if response.kind is ResponseKind.ERROR:
            console.bad_request(response.error_message)
        else:
            console.password(response.password)
            generated += 1

    await client.close()
    return generated


async def _run(
    args: argparse.Namespace,
    console: Console,
    read_line: ReadLine = read_stdin_line,
) -> int:
    client = PasswordClient(args.host, args.port)
    try:
        await client.connect()
    except TransportInitError as e:
        logger.error("client_connect_failed", error=e.message, **e.details)
        console.error("Connection failed.")
        return 1
    except PasswordServiceError as e:
        logger.error("client_greeting_failed", error=e.message, error_type=type(e).__name__)
        console.error(f"Connection closed prematurely ({e.message}).")
        return 1

    console.info("Connection completed\n")
    try:
        await run_interactive(client, console, read_line, default_length=str(args.default_length))
    except PasswordServiceError as e:
        logger.error("client_session_failed", error=e.message, error_type=type(e).__name__)
        console.error(f"Session ended: {e.message}")
        await client.close()
        return 1
    return 0


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Password generation client")
    parser.add_argument("--host", default=settings.host, help="Server host")
    parser.add_argument("--port", type=int, default=settings.port, help="Server port")
    parser.add_argument(
        "--default-length",
        type=int,
        default=settings.default_password_length,
        help="Length used when only the type is entered",
    )
    args = parser.parse_args(argv)

    console = Console()
    # The terminal belongs to the menu; log records go to the file only
    try:
        setup_logging("client", level=logging.WARNING, console=False)
    except ConfigurationError as e:
        console.error(f"Configuration error: {e.message}")
        return 1

    try:
        return asyncio.run(_run(args, console))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
