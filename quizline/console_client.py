"""
Interactive text console for playing the quiz.
"""
import asyncio
import logging
from typing import Callable, Optional

from .client import QuizConnection, QuizConnectionError
from .models import OPTION_LETTERS, ServerAddress
from .protocol import CommandKind, MessageKind


logger = logging.getLogger(__name__)

ANSWER_PROMPT = "Your answer (e.g., a): "
COMMAND_PROMPT = "> "


def to_command(text: str) -> str:
    """Turn console input into a protocol line; a bare letter becomes an answer."""
    text = text.strip()
    if len(text) == 1 and text.lower() in OPTION_LETTERS:
        return f"{CommandKind.ANSWER.value}:{text.lower()}"
    return text


class ConsoleClient:
    """
    Plays one quiz session on the console.

    Every server line is echoed. The user is prompted after questions,
    feedback and notices; END finishes the client.
    """

    def __init__(
        self,
        connection: QuizConnection,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print
    ):
        """
        Initialize the console client.

        Args:
            connection: Open connection to the quiz server
            input_func: Blocking prompt function, run off the event loop
            output_func: Function used to display text
        """
        self.connection = connection
        self._input = input_func
        self._output = output_func

    async def _prompt(self, prompt: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._input, prompt)
        except EOFError:
            return None

    async def run(self) -> bool:
        """
        Run until the quiz ends or the connection drops.

        Returns:
            True if the server sent END, False otherwise
        """
        try:
            while True:
                message = await self.connection.receive()
                if message is None:
                    self._output("Connection lost.")
                    return False

                if message.kind is MessageKind.QUESTION:
                    self._output(f"Server: QUESTION:{message.payload}")
                    prompt = ANSWER_PROMPT
                elif message.kind is MessageKind.FEEDBACK:
                    self._output(f"Server: FEEDBACK:{message.payload}")
                    prompt = COMMAND_PROMPT
                elif message.kind is MessageKind.END:
                    self._output(f"Server: END:{message.payload}")
                    return True
                else:
                    self._output(f"Server: {message.payload}")
                    prompt = COMMAND_PROMPT

                text = await self._prompt(prompt)
                if text is None:
                    # End of console input leaves the quiz cleanly
                    await self.connection.send(CommandKind.QUIT.value)
                    continue
                await self.connection.send(to_command(text))
        except QuizConnectionError as e:
            logger.warning(f"Console session ended: {e}")
            self._output("Connection lost.")
            return False
        finally:
            await self.connection.close()


async def run_console(
    address: ServerAddress,
    input_func: Callable[[str], str] = input,
    output_func: Callable[[str], None] = print
) -> bool:
    """
    Connect to the server and play on the console.

    Returns:
        True if the quiz reached its end, False on connection problems
    """
    if address.from_defaults:
        output_func("Configuration file not found or invalid. Using default values.")

    try:
        connection = await QuizConnection.open(address)
    except QuizConnectionError:
        output_func("Could not connect to the server.")
        return False

    output_func("Connected to the server.")
    return await ConsoleClient(connection, input_func, output_func).run()
