"""
Password Session - drives one accepted connection from menu to close.

State machine (declared in pwgen.protocol.state_model):

    GREETING --menu_sent--> AWAITING_REQUEST --request_received--> RESPONDING
    RESPONDING --response_sent--> AWAITING_REQUEST
    RESPONDING --quit_acknowledged--> CLOSED
    any live state --transport_failed--> CLOSED

Validation failures are answered with an error response and the session
keeps going. Transport failures end the session and propagate to the
caller; the connection is closed either way.
"""
from __future__ import annotations

import asyncio
import random
from typing import FrozenSet, Optional, Tuple

import structlog

from pwgen.config import Settings, settings as default_settings
from pwgen.engine.codec import read_message, write_message
from pwgen.engine.generator import generate
from pwgen.engine.validator import check_request, keep_generating
from pwgen.exceptions import StateTransitionError, ValidationError
from pwgen.models import (
    MenuMessage,
    PasswordRequest,
    PasswordResponse,
    SessionState,
)
from pwgen.protocol import build_menu_text, state_model

logger = structlog.get_logger()

_TRANSITIONS: FrozenSet[Tuple[str, str]] = frozenset(
    (t["from"], t["to"]) for t in state_model["transitions"]
)


def _format_peer(peername) -> str:
    if not peername:
        return "unknown"
    return f"{peername[0]}:{peername[1]}"


class PasswordSession:
    """
    One client conversation over an exclusively owned connection.

    Example:
        session = PasswordSession(reader, writer)
        await session.run()  # returns once the client quits
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        config: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.settings = config or default_settings
        if rng is None and self.settings.system_random:
            rng = random.SystemRandom()
        self.rng = rng

        self.state = SessionState(state_model["initial_state"])
        self.requests_served = 0
        self.peer = _format_peer(writer.get_extra_info("peername"))
        self.menu = MenuMessage(
            menu_text=build_menu_text(
                self.settings.min_password_length,
                self.settings.max_password_length,
            )
        )
        self._log = logger.bind(peer=self.peer)

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def run(self) -> None:
        """
        Serve the connection until the client quits.

        Raises:
            TransportError: If the peer disconnects or a send fails
            ProtocolError: If a received message cannot be decoded
        """
        self._log.info("session_started")
        try:
            await write_message(self.writer, self.menu)
            self._transition(SessionState.AWAITING_REQUEST)

            while self.state is SessionState.AWAITING_REQUEST:
                request = await read_message(self.reader, PasswordRequest)
                self._transition(SessionState.RESPONDING)

                response = self.handle_request(request)
                await write_message(self.writer, response)
                self.requests_served += 1

                if response.continue_:
                    self._transition(SessionState.AWAITING_REQUEST)
                else:
                    self._transition(SessionState.CLOSED)
        finally:
            if not self.closed:
                self._transition(SessionState.CLOSED)
            await self._close()
            self._log.info("session_closed", requests_served=self.requests_served)

    def handle_request(self, request: PasswordRequest) -> PasswordResponse:
        """Build a fresh response for one request. No I/O."""
        if not keep_generating(request.selector):
            self._log.debug("quit_requested")
            return PasswordResponse.closing()

        try:
            password_class = check_request(
                request,
                self.settings.min_password_length,
                self.settings.max_password_length,
            )
        except ValidationError as e:
            self._log.info("request_rejected", reason=e.message.strip(), **e.details)
            return PasswordResponse.failure(e.message)

        length = int(request.length_text)
        password = generate(password_class, length, self.rng)
        self._log.info("password_generated", password_class=password_class.name, length=length)
        return PasswordResponse.success(password)

    def _transition(self, target: SessionState) -> None:
        if (self.state.value, target.value) not in _TRANSITIONS:
            raise StateTransitionError(
                f"Invalid session transition {self.state.value} -> {target.value}",
                current_state=self.state.value,
                target_state=target.value,
            )
        self._log.debug("session_transition", from_state=self.state.value, to_state=target.value)
        self.state = target

    async def _close(self) -> None:
        if not self.writer.is_closing():
            self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError) as e:
            self._log.warning(
                "session_close_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
