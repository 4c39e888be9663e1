"""
Test fixtures and sample data for quiz server tests.
"""
import asyncio
from typing import List, Optional, Tuple
from unittest.mock import AsyncMock, Mock

import discord

from quizline.models import Question, ServerSettings
from quizline.question_bank import QuestionBank
from quizline.server import QuizServer


class TestFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def create_sample_questions() -> List[Question]:
        """Create sample questions for testing."""
        return [
            Question("What is 2+2?", ["3", "4", "5", "6"], 1),
            Question("What is the capital of France?", ["London", "Berlin", "Paris", "Madrid"], 2),
            Question("What color is the sky?", ["Blue", "Green", "Red", "Yellow"], 0),
        ]

    @staticmethod
    def create_two_question_bank() -> QuestionBank:
        """Two questions whose correct answers are a and b."""
        return QuestionBank([
            Question("Which protocol is connection-oriented?", ["TCP", "UDP", "IP", "ICMP"], 0),
            Question("What is 3*3?", ["6", "9", "12", "33"], 1),
        ])

    @staticmethod
    def create_valid_question_json() -> dict:
        """Create valid question file structure."""
        return {
            "quiz": [
                {
                    "question": "What is the capital of Japan?",
                    "options": ["Seoul", "Tokyo", "Beijing", "Bangkok"],
                    "answer": "b"
                },
                {
                    "question": "What is 10 + 5?",
                    "options": ["10", "15", "20", "25"],
                    "answer": "B"
                }
            ]
        }

    @staticmethod
    def create_invalid_question_json_structures() -> List:
        """Create various invalid question file structures for testing."""
        return [
            # Not an object
            ["quiz"],
            # Missing 'quiz' key
            {"questions": []},
            # 'quiz' is not an array
            {"quiz": "not an array"},
            # Missing options
            {"quiz": [{"question": "Test?", "answer": "a"}]},
            # Three options
            {"quiz": [{"question": "Test?", "options": ["1", "2", "3"], "answer": "a"}]},
            # Answer outside a-d
            {"quiz": [{"question": "Test?", "options": ["1", "2", "3", "4"], "answer": "e"}]},
            # Non-string question
            {"quiz": [{"question": 123, "options": ["1", "2", "3", "4"], "answer": "a"}]},
        ]

    @staticmethod
    def two_question_transcript() -> List[str]:
        """Server lines for START, ANSWER:a, NEXT, ANSWER:a, NEXT on the two-question bank."""
        return [
            "Welcome to the quiz! Send START to begin, QUIT to leave.",
            "QUESTION:Which protocol is connection-oriented?;TCP;UDP;IP;ICMP",
            "FEEDBACK:Correct!",
            "QUESTION:What is 3*3?;6;9;12;33",
            "FEEDBACK:Incorrect! The correct answer was b",
            "END:Quiz over! Your final score is 1",
        ]


class FakeStreamWriter:
    """In-memory stand-in for asyncio.StreamWriter."""

    def __init__(self, peername=("127.0.0.1", 50000), fail_writes: bool = False):
        self.buffer = bytearray()
        self.closed = False
        self._peername = peername
        self._fail_writes = fail_writes

    def get_extra_info(self, name, default=None):
        if name == 'peername':
            return self._peername
        return default

    def write(self, data: bytes) -> None:
        if self._fail_writes:
            raise ConnectionResetError("peer reset")
        self.buffer.extend(data)

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        pass

    @property
    def lines(self) -> List[str]:
        return self.buffer.decode('utf-8').splitlines()


class AsyncTestHelpers:
    """Helper functions for async testing."""

    @staticmethod
    async def run_with_timeout(coro, timeout: float = 5.0):
        """Run coroutine with timeout."""
        return await asyncio.wait_for(coro, timeout=timeout)

    @staticmethod
    def make_reader(*lines: str, eof: bool = True) -> asyncio.StreamReader:
        """StreamReader pre-loaded with client lines."""
        reader = asyncio.StreamReader()
        for line in lines:
            reader.feed_data((line + "\n").encode('utf-8'))
        if eof:
            reader.feed_eof()
        return reader

    @staticmethod
    async def start_server(
        bank: Optional[QuestionBank] = None,
        max_sessions: int = 5,
        read_timeout: Optional[float] = None
    ) -> QuizServer:
        """Start a server on a free local port."""
        settings = ServerSettings(
            host="127.0.0.1",
            port=0,
            max_sessions=max_sessions,
            read_timeout=read_timeout
        )
        server = QuizServer(bank or TestFixtures.create_two_question_bank(), settings)
        await server.start()
        return server

    @staticmethod
    async def open_client(server: QuizServer) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        return await asyncio.open_connection("127.0.0.1", server.port)

    @staticmethod
    async def read_line(reader: asyncio.StreamReader, timeout: float = 5.0) -> str:
        data = await asyncio.wait_for(reader.readline(), timeout)
        return data.decode('utf-8').rstrip("\n")


class MockDiscordObjects:
    """Mock Discord objects for testing front-end functionality."""

    @staticmethod
    def create_mock_interaction(user_id: int = 67890) -> Mock:
        """Create mock Discord interaction."""
        interaction = Mock(spec=discord.Interaction)
        interaction.user = Mock()
        interaction.user.id = user_id
        interaction.response = Mock()
        interaction.response.is_done.return_value = False
        interaction.response.send_message = AsyncMock()
        interaction.response.defer = AsyncMock()
        interaction.followup = Mock()
        interaction.followup.send = AsyncMock()
        interaction.original_response = AsyncMock()
        return interaction

    @staticmethod
    def create_mock_message(message_id: int = 11111) -> Mock:
        """Create mock Discord message."""
        message = Mock(spec=discord.Message)
        message.id = message_id
        message.edit = AsyncMock()
        return message

    @staticmethod
    def create_mock_connection() -> Mock:
        """Create mock quiz server connection."""
        connection = Mock()
        connection.send = AsyncMock()
        connection.receive = AsyncMock(return_value=None)
        connection.close = AsyncMock()
        return connection
