"""
Password service client

Holds one connection to the server, reads the menu on connect and
exchanges one request/response pair per call.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from pwgen.engine.codec import read_message, write_message
from pwgen.exceptions import ProtocolError, TransportError, TransportInitError
from pwgen.models import MenuMessage, PasswordRequest, PasswordResponse
from pwgen.protocol import BUFFER_SIZE, DEFAULT_HOST, DEFAULT_PORT, QUIT_SELECTOR

logger = structlog.get_logger()


@dataclass(frozen=True)
class ParsedInput:
    """One line of user input turned into request fields."""

    selector: str
    length_text: str
    used_default: bool = False


def parse_input_line(line: str, default_length: str = "8") -> Optional[ParsedInput]:
    """
    Parse "<type> [length]" typed by the user.

    The first non-blank character is the selector and the next
    whitespace-delimited token is the length. A missing length is replaced by
    `default_length`. Blank lines and lines with extra tokens give None.
    """
    stripped = line.lstrip()
    if not stripped:
        return None

    selector = stripped[0]
    rest = stripped[1:].split()
    if len(rest) > 1:
        return None
    if not rest:
        return ParsedInput(selector, default_length, used_default=True)
    # Keep within the request field capacity
    return ParsedInput(selector, rest[0][:BUFFER_SIZE - 1])


class PasswordClient:
    """
    Client side of the password protocol.

    Example:
        async with PasswordClient("127.0.0.1", 8080) as client:
            print(client.menu.menu_text)
            response = await client.request("n", "12")
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self.menu: Optional[MenuMessage] = None
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def connect(self) -> MenuMessage:
        """
        Open the connection and receive the menu.

        Raises:
            TransportInitError: If the server cannot be reached
            ConnectionClosed: If the server hangs up before the menu arrives
            ParseError: If the menu cannot be decoded
        """
        try:
            self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        except OSError as e:
            raise TransportInitError(
                f"Connection to {self.host}:{self.port} failed",
                details={"error": str(e)},
            )

        logger.debug("client_connected", host=self.host, port=self.port)
        try:
            self.menu = await read_message(self._reader, MenuMessage)
        except (TransportError, ProtocolError):
            await self.close()
            raise
        return self.menu

    async def request(self, selector: str, length_text: str = "") -> PasswordResponse:
        """
        Send one request and wait for its response.

        Raises:
            TransportError: If not connected or the exchange fails
            ProtocolError: If the response cannot be encoded or decoded
        """
        if self._reader is None or self._writer is None:
            raise TransportError("Not connected")

        await write_message(
            self._writer,
            PasswordRequest(selector=selector, length_text=length_text),
        )
        response = await read_message(self._reader, PasswordResponse)
        logger.debug("response_received", kind=response.kind.value)
        return response

    async def quit(self) -> PasswordResponse:
        """Ask the server to end the session, then close."""
        try:
            return await self.request(QUIT_SELECTOR)
        finally:
            await self.close()

    async def close(self) -> None:
        if self._writer is None:
            return
        writer, self._writer, self._reader = self._writer, None, None
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug("client_close_failed", error=str(e))

    async def __aenter__(self) -> "PasswordClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
