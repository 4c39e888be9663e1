"""
Session runner: binds one client connection to one quiz session.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .lifecycle import SessionLifecycleLogger
from .protocol import WELCOME_MESSAGE
from .question_bank import QuestionBank, QuestionNotFoundError
from .session import QuizSession


logger = logging.getLogger(__name__)

ENCODING = "utf-8"


@dataclass(frozen=True)
class ConnectionClosed:
    """Signals that the connection can no longer be used."""
    reason: str


def format_peer(writer: asyncio.StreamWriter) -> str:
    peername = writer.get_extra_info('peername')
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername) if peername else "unknown"


class SessionRunner:
    """
    Runs the read / dispatch / write loop for a single connection.

    The runner creates its own QuizSession, so session state never leaves
    the task that runs it. Disconnects are reported as ConnectionClosed
    values, not exceptions, and always end the loop quietly.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        bank: QuestionBank,
        read_timeout: Optional[float] = None
    ):
        """
        Initialize the runner.

        Args:
            reader: Stream to read client lines from
            writer: Stream to write response lines to
            bank: Shared read-only question bank
            read_timeout: Seconds to wait for a line before closing, None to wait forever
        """
        self._reader = reader
        self._writer = writer
        self._read_timeout = read_timeout
        self.peer = format_peer(writer)
        self.session = QuizSession(bank, session_id=self.peer)

    async def run(self) -> None:
        """Run the session to completion and close the connection."""
        opened_at = SessionLifecycleLogger.log_session_opened(self.peer)
        try:
            closed = await self._write_lines([WELCOME_MESSAGE])
            while closed is None:
                line = await self._read_line()
                if isinstance(line, ConnectionClosed):
                    closed = line
                    break

                try:
                    responses = self.session.handle(line)
                except QuestionNotFoundError as e:
                    SessionLifecycleLogger.log_invariant_violation(self.peer, str(e))
                    return

                closed = await self._write_lines(responses)
                if self.session.is_finished:
                    break

            if closed is not None:
                SessionLifecycleLogger.log_connection_lost(
                    self.peer, closed.reason, self.session.state.name
                )
            else:
                SessionLifecycleLogger.log_session_finished(
                    self.peer, self.session.score, self.session.total_questions, opened_at
                )
        finally:
            await self._close()

    async def _read_line(self) -> Union[str, ConnectionClosed]:
        try:
            if self._read_timeout is None:
                data = await self._reader.readline()
            else:
                data = await asyncio.wait_for(self._reader.readline(), self._read_timeout)
        except asyncio.TimeoutError:
            return ConnectionClosed(f"no input for {self._read_timeout}s")
        except ValueError as e:
            # StreamReader raises ValueError when a line exceeds its buffer limit
            return ConnectionClosed(f"line too long: {e}")
        except (ConnectionError, OSError) as e:
            return ConnectionClosed(f"read failed: {e}")

        if not data:
            return ConnectionClosed("peer closed the connection")
        return data.decode(ENCODING, errors='replace').rstrip("\r\n")

    async def _write_lines(self, lines: Iterable[str]) -> Optional[ConnectionClosed]:
        try:
            for line in lines:
                self._writer.write((line + "\n").encode(ENCODING))
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            return ConnectionClosed(f"write failed: {e}")
        return None

    async def _close(self) -> None:
        try:
            self._writer.close()
            await self._writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug(f"Error while closing connection to {self.peer}: {e}")
