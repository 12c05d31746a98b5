"""
Tests for PasswordSession.

Tests cover:
- Request handling for the four reference scenarios
- Fresh responses every round
- Full conversations over a connected socket pair
- Transport failures ending the session
- State transitions
"""
import asyncio
import random
import socket
from unittest.mock import MagicMock

import pytest

from pwgen.config import Settings
from pwgen.engine.codec import encode_message, message_size, read_message, write_message
from pwgen.engine.session import PasswordSession
from pwgen.exceptions import ConnectionClosed, ShortWrite, StateTransitionError
from pwgen.models import (
    MenuMessage,
    PasswordRequest,
    PasswordResponse,
    ResponseKind,
    SessionState,
)
from pwgen.protocol import INVALID_LENGTH_MESSAGE, INVALID_TYPE_MESSAGE


def _offline_session(**settings_overrides) -> PasswordSession:
    writer = MagicMock()
    writer.get_extra_info.return_value = ("127.0.0.1", 40000)
    return PasswordSession(MagicMock(), writer, Settings(**settings_overrides), rng=random.Random(5))


async def _connected_session(**settings_overrides):
    """Session on one end of a socket pair, raw client streams on the other."""
    left, right = socket.socketpair()
    server_reader, server_writer = await asyncio.open_connection(sock=left)
    client_reader, client_writer = await asyncio.open_connection(sock=right)
    session = PasswordSession(server_reader, server_writer, Settings(**settings_overrides))
    return session, client_reader, client_writer


class TestHandleRequest:
    """Scenarios answered without any I/O."""

    def test_numeric_request(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="n", length_text="8"))

        assert response.continue_ is True
        assert response.is_error is False
        assert len(response.password) == 8
        assert response.password.isdigit()

    def test_invalid_length(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="s", length_text="abc"))

        assert response.is_error is True
        assert response.error_message == INVALID_LENGTH_MESSAGE
        assert response.password == ""

    def test_invalid_type(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="x", length_text="10"))

        assert response.is_error is True
        assert response.error_message == INVALID_TYPE_MESSAGE

    def test_quit(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="q"))

        assert response.continue_ is False
        assert response.password == ""
        assert response.error_message == ""
        assert response.is_error is False

    def test_quit_ignores_length(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="Q", length_text="garbage"))

        assert response.kind is ResponseKind.CLOSE

    def test_uppercase_class_selector(self):
        session = _offline_session()
        response = session.handle_request(PasswordRequest(selector="A", length_text="12"))

        assert response.kind is ResponseKind.SUCCESS
        assert response.password.islower()

    def test_configured_bounds(self):
        session = _offline_session(min_password_length=10, max_password_length=12, default_password_length=10)

        assert session.handle_request(PasswordRequest(selector="n", length_text="8")).is_error
        assert len(session.handle_request(PasswordRequest(selector="n", length_text="12")).password) == 12

    def test_error_does_not_leak_into_next_response(self):
        session = _offline_session()
        session.handle_request(PasswordRequest(selector="x", length_text="10"))
        response = session.handle_request(PasswordRequest(selector="m", length_text="6"))

        assert response.error_message == ""
        assert response.is_error is False

    def test_menu_mentions_bounds(self):
        session = _offline_session(min_password_length=7, max_password_length=20)
        assert "(between 7 and 20)" in session.menu.menu_text


class TestTransitions:
    def test_initial_state(self):
        assert _offline_session().state is SessionState.GREETING

    def test_undeclared_transition_rejected(self):
        session = _offline_session()

        with pytest.raises(StateTransitionError) as exc_info:
            session._transition(SessionState.RESPONDING)

        assert exc_info.value.current_state == "greeting"
        assert exc_info.value.target_state == "responding"


class TestConversation:
    """Full sessions over a socket pair."""

    @pytest.mark.asyncio
    async def test_menu_requests_and_quit(self):
        session, reader, writer = await _connected_session()
        task = asyncio.create_task(session.run())

        menu = await read_message(reader, MenuMessage)
        assert "n: numeric password" in menu.menu_text

        await write_message(writer, PasswordRequest(selector="n", length_text="8"))
        first = await read_message(reader, PasswordResponse)
        assert first.password.isdigit() and len(first.password) == 8

        await write_message(writer, PasswordRequest(selector="x", length_text="10"))
        second = await read_message(reader, PasswordResponse)
        assert second.error_message == INVALID_TYPE_MESSAGE

        await write_message(writer, PasswordRequest(selector="s", length_text="32"))
        third = await read_message(reader, PasswordResponse)
        assert len(third.password) == 32

        await write_message(writer, PasswordRequest(selector="q"))
        last = await read_message(reader, PasswordResponse)
        assert last.kind is ResponseKind.CLOSE

        await asyncio.wait_for(task, timeout=2)
        assert session.state is SessionState.CLOSED
        assert session.requests_served == 4

        # Server side is closed; nothing more is read or sent
        assert await reader.read() == b""
        writer.close()

    @pytest.mark.asyncio
    async def test_requests_after_quit_are_not_read(self):
        session, reader, writer = await _connected_session()
        task = asyncio.create_task(session.run())
        await read_message(reader, MenuMessage)

        # Quit and a second request sent together
        writer.write(
            encode_message(PasswordRequest(selector="q"))
            + encode_message(PasswordRequest(selector="n", length_text="8"))
        )
        await writer.drain()

        response = await read_message(reader, PasswordResponse)
        assert response.continue_ is False

        await asyncio.wait_for(task, timeout=2)
        assert session.requests_served == 1
        assert await reader.read() == b""
        writer.close()

    @pytest.mark.asyncio
    async def test_peer_closes_while_awaiting_request(self):
        session, reader, writer = await _connected_session()
        task = asyncio.create_task(session.run())
        await read_message(reader, MenuMessage)

        writer.close()

        with pytest.raises(ConnectionClosed):
            await asyncio.wait_for(task, timeout=2)
        assert session.state is SessionState.CLOSED
        assert session.requests_served == 0

    @pytest.mark.asyncio
    async def test_peer_sends_partial_request(self):
        session, reader, writer = await _connected_session()
        task = asyncio.create_task(session.run())
        await read_message(reader, MenuMessage)

        data = encode_message(PasswordRequest(selector="n", length_text="8"))
        writer.write(data[: message_size(PasswordRequest) // 2])
        await writer.drain()
        writer.close()

        with pytest.raises(ConnectionClosed) as exc_info:
            await asyncio.wait_for(task, timeout=2)
        assert exc_info.value.details["received"] == message_size(PasswordRequest) // 2
        assert session.closed

    @pytest.mark.asyncio
    async def test_menu_send_fails(self):
        session, reader, writer = await _connected_session()
        session.writer.close()

        with pytest.raises(ShortWrite):
            await asyncio.wait_for(session.run(), timeout=2)

        assert session.state is SessionState.CLOSED
        assert session.requests_served == 0
        # No menu ever reached the client
        assert await asyncio.wait_for(reader.read(), timeout=2) == b""
        writer.close()
