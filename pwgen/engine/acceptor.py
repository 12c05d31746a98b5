"""
Connection Acceptor - listens for clients and runs one session per connection.

By default connections are served strictly one after another: a session runs
to completion before the next connection is accepted, so a stalled client
holds up everyone queued behind it in the listen backlog. With the
concurrent_sessions setting each accepted connection gets its own task;
sessions share no state so nothing else changes.
"""
from __future__ import annotations

import asyncio
import socket
from typing import Optional, Set

import structlog

from pwgen.config import Settings, settings as default_settings
from pwgen.engine.session import PasswordSession
from pwgen.exceptions import ProtocolError, TransportError, TransportInitError

logger = structlog.get_logger()


class ConnectionAcceptor:
    """
    TCP listener for the password service.

    Example:
        acceptor = ConnectionAcceptor("127.0.0.1", 8080)
        await acceptor.run()

    or, for a background server:

        async with ConnectionAcceptor("127.0.0.1", 0) as acceptor:
            port = acceptor.port
    """

    # Seconds to wait after a failed accept() before retrying
    accept_retry_delay = 0.1

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        backlog: Optional[int] = None,
        config: Optional[Settings] = None,
    ):
        self.settings = config or default_settings
        self.host = host if host is not None else self.settings.host
        self.port = port if port is not None else self.settings.port
        self.backlog = backlog if backlog is not None else self.settings.backlog
        self.concurrent = self.settings.concurrent_sessions

        self.running = False
        self.server_socket: Optional[socket.socket] = None
        self.sessions_served = 0
        self._serve_task: Optional[asyncio.Task] = None
        self._session_tasks: Set[asyncio.Task] = set()

    def start(self) -> None:
        """
        Bind and listen.

        Raises:
            TransportInitError: If the listener cannot be created
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            raise TransportInitError(
                f"Cannot listen on {self.host}:{self.port}",
                details={"error": str(e)},
            )

        self.server_socket = sock
        # Port 0 asks the OS for a free port
        self.port = sock.getsockname()[1]
        logger.info(
            "acceptor_listening",
            host=self.host,
            port=self.port,
            backlog=self.backlog,
            concurrent=self.concurrent,
        )

    async def serve_forever(self) -> None:
        """Accept connections until stopped or cancelled."""
        if self.server_socket is None:
            self.start()

        loop = asyncio.get_running_loop()
        self._serve_task = asyncio.current_task()
        self.running = True

        try:
            while self.running:
                try:
                    client_sock, addr = await loop.sock_accept(self.server_socket)
                except OSError as e:
                    if not self.running or self.server_socket is None or self.server_socket.fileno() == -1:
                        break
                    logger.error(
                        "accept_failed",
                        error=str(e),
                        error_type=type(e).__name__,
                        retry_in=self.accept_retry_delay,
                    )
                    # Out of descriptors or similar; let sessions release them
                    await asyncio.sleep(self.accept_retry_delay)
                    continue

                logger.info("connection_accepted", peer=f"{addr[0]}:{addr[1]}")

                if self.concurrent:
                    task = asyncio.create_task(self._serve_connection(client_sock))
                    self._session_tasks.add(task)
                    task.add_done_callback(self._session_tasks.discard)
                else:
                    await self._serve_connection(client_sock)
        finally:
            self.running = False

    async def run(self) -> None:
        """Bind, listen and serve until cancelled."""
        self.start()
        try:
            await self.serve_forever()
        finally:
            self._close_listener()

    async def stop(self) -> None:
        """Stop accepting, cancel live sessions and release the listener."""
        self.running = False

        tasks = list(self._session_tasks)
        if self._serve_task is not None and self._serve_task is not asyncio.current_task():
            tasks.append(self._serve_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._serve_task = None

        self._close_listener()
        logger.info("acceptor_stopped", sessions_served=self.sessions_served)

    async def __aenter__(self) -> "ConnectionAcceptor":
        self.start()
        self._serve_task = asyncio.create_task(self.serve_forever())
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _serve_connection(self, client_sock: socket.socket) -> None:
        try:
            reader, writer = await asyncio.open_connection(sock=client_sock)
        except OSError as e:
            logger.error("connection_setup_failed", error=str(e))
            client_sock.close()
            return

        session = PasswordSession(reader, writer, self.settings)
        try:
            await session.run()
        except (TransportError, ProtocolError) as e:
            # Fatal to this session only
            logger.warning(
                "session_aborted",
                peer=session.peer,
                error=e.message,
                error_type=type(e).__name__,
                requests_served=session.requests_served,
            )
        finally:
            self.sessions_served += 1

    def _close_listener(self) -> None:
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None
