"""
Core data models for the quiz server and its clients.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


OPTION_LETTERS = "abcd"


@dataclass(frozen=True)
class Question:
    """Represents a single multiple-choice question with four options."""
    prompt: str
    options: Tuple[str, str, str, str]
    correct_index: int

    def __post_init__(self):
        # Accept any sequence but store a tuple so the question stays immutable
        object.__setattr__(self, 'options', tuple(self.options))
        if len(self.options) != len(OPTION_LETTERS):
            raise ValueError(
                f"Question must have exactly {len(OPTION_LETTERS)} options, got {len(self.options)}"
            )
        if not 0 <= self.correct_index < len(OPTION_LETTERS):
            raise ValueError(f"Correct option index out of range: {self.correct_index}")

    @property
    def correct_letter(self) -> str:
        """Letter (a-d) of the correct option."""
        return OPTION_LETTERS[self.correct_index]


class SessionState(Enum):
    """Enumeration of quiz session states."""
    AWAITING_START = "awaiting_start"
    AWAITING_ANSWER = "awaiting_answer"
    AWAITING_NEXT = "awaiting_next"
    FINISHED = "finished"


@dataclass
class ServerSettings:
    """Configuration settings for the quiz server."""
    host: str = "localhost"
    port: int = 1234
    max_sessions: int = 5
    read_timeout: Optional[float] = 300


@dataclass(frozen=True)
class ServerAddress:
    """Server endpoint as read from the client configuration file."""
    host: str
    port: int
    from_defaults: bool = False
