"""
TCP listener that hands each connection to a bounded pool of session slots.
"""
import asyncio
import logging
from typing import Optional, Set

from .lifecycle import SessionLifecycleLogger
from .models import ServerSettings
from .question_bank import QuestionBank
from .runner import SessionRunner, format_peer


class ServerBindError(OSError):
    """Raised when the listener cannot bind its endpoint."""
    pass


class QuizServer:
    """
    Accepts quiz clients and runs one session per connection.

    At most ``settings.max_sessions`` sessions run at once. Connections
    accepted while every slot is busy wait for a free slot before their
    session (and welcome banner) starts.
    """

    def __init__(self, bank: QuestionBank, settings: Optional[ServerSettings] = None):
        """
        Initialize the server.

        Args:
            bank: Read-only question bank shared by every session
            settings: Listener settings, defaults if None
        """
        self.logger = logging.getLogger(__name__)
        self.bank = bank
        self.settings = settings or ServerSettings()
        self._slots = asyncio.Semaphore(self.settings.max_sessions)
        self._server: Optional[asyncio.AbstractServer] = None
        self._connections: Set[asyncio.Task] = set()
        self._active_sessions = 0
        self._stopping = False

    @property
    def active_sessions(self) -> int:
        """Number of sessions currently holding a slot."""
        return self._active_sessions

    @property
    def port(self) -> Optional[int]:
        """Port the listener is bound to, or None before start()."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        """
        Bind the listening endpoint.

        Raises:
            ServerBindError: If the endpoint cannot be bound
        """
        self._stopping = False
        try:
            self._server = await asyncio.start_server(
                self._handle_connection,
                self.settings.host,
                self.settings.port
            )
        except OSError as e:
            self.logger.error(
                f"Failed to bind {self.settings.host}:{self.settings.port}: {e}"
            )
            raise ServerBindError(
                f"Cannot listen on {self.settings.host}:{self.settings.port}: {e}"
            ) from e

        SessionLifecycleLogger.log_server_started(
            self.settings.host,
            self.port,
            self.settings.max_sessions,
            self.bank.size()
        )

    async def serve_forever(self) -> None:
        """Accept connections until stop() is called or the task is cancelled."""
        if self._server is None:
            await self.start()
        try:
            await self._server.serve_forever()
        except asyncio.CancelledError:
            self.logger.info("Server task cancelled")
            raise

    async def stop(self) -> None:
        """Stop accepting connections and cancel running sessions."""
        if self._server is None:
            return

        self._stopping = True
        self._server.close()
        pending = [task for task in self._connections if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self._server.wait_closed()
        self._server = None

        SessionLifecycleLogger.log_server_stopped(len(pending))

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        if self._stopping:
            # Accepted before stop() but scheduled after it, so never tracked
            writer.close()
            return

        task = asyncio.current_task()
        self._connections.add(task)
        peer = format_peer(writer)
        try:
            if self._slots.locked():
                SessionLifecycleLogger.log_slot_wait(
                    peer, self._active_sessions, self.settings.max_sessions
                )

            try:
                await self._slots.acquire()
            except asyncio.CancelledError:
                # The runner never started, so it will not close the connection
                writer.close()
                raise

            try:
                self._active_sessions += 1
                try:
                    runner = SessionRunner(
                        reader, writer, self.bank, self.settings.read_timeout
                    )
                    await runner.run()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    # One broken session must never take the listener down
                    SessionLifecycleLogger.log_session_error(peer, type(e).__name__, str(e))
                    self.logger.debug("Session failure details", exc_info=True)
                finally:
                    self._active_sessions -= 1
            finally:
                self._slots.release()
        finally:
            self._connections.discard(task)
