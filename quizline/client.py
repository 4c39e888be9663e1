"""
Client side of the quiz line protocol, shared by the console and Discord front-ends.
"""
import asyncio
import logging
from typing import Optional

from .models import ServerAddress
from .protocol import ServerMessage, parse_server_message


logger = logging.getLogger(__name__)

ENCODING = "utf-8"


class QuizConnectionError(ConnectionError):
    """Raised when the quiz server cannot be reached or the connection drops."""
    pass


class QuizConnection:
    """Line-oriented connection to a quiz server."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self._reader = reader
        self._writer = writer
        self._closed = False

    @classmethod
    async def open(cls, address: ServerAddress, timeout: float = 10.0) -> "QuizConnection":
        """
        Connect to the quiz server.

        Args:
            address: Host and port of the server
            timeout: Seconds to wait for the connection

        Returns:
            Connected QuizConnection

        Raises:
            QuizConnectionError: If the server refuses or cannot be reached
        """
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(address.host, address.port), timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Could not connect to {address.host}:{address.port}: {e}")
            raise QuizConnectionError(
                f"Could not connect to {address.host}:{address.port}"
            ) from e

        logger.info(f"Connected to quiz server {address.host}:{address.port}")
        return cls(reader, writer)

    async def send(self, command: str) -> None:
        """
        Send one command line.

        Raises:
            QuizConnectionError: If the connection is closed or the write fails
        """
        if self._closed:
            raise QuizConnectionError("Connection already closed")
        try:
            self._writer.write((command.strip() + "\n").encode(ENCODING))
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            raise QuizConnectionError(f"Connection lost while sending: {e}") from e

    async def receive(self) -> Optional[ServerMessage]:
        """
        Read the next server line.

        Returns:
            Parsed ServerMessage, or None once the server has closed the connection

        Raises:
            QuizConnectionError: If the read fails
        """
        try:
            data = await self._reader.readline()
        except (ConnectionError, OSError, ValueError) as e:
            raise QuizConnectionError(f"Connection lost while reading: {e}") from e

        if not data:
            return None
        return parse_server_message(data.decode(ENCODING, errors='replace'))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._writer.close()
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error while closing quiz connection: {e}")
