"""
Line protocol shared by the quiz server and its clients.

Client commands: START, NEXT, ANSWER:<letter>, QUIT.
Server responses: QUESTION:, FEEDBACK:, END: prefixed lines, plus
unprefixed banner and error notices.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .models import OPTION_LETTERS, Question


QUESTION_PREFIX = "QUESTION:"
FEEDBACK_PREFIX = "FEEDBACK:"
END_PREFIX = "END:"

FIELD_SEPARATOR = ";"

WELCOME_MESSAGE = "Welcome to the quiz! Send START to begin, QUIT to leave."
INVALID_ANSWER_MESSAGE = "Invalid answer: use ANSWER:a, ANSWER:b, ANSWER:c or ANSWER:d"


class InvalidAnswerError(ValueError):
    """Raised when an ANSWER payload is missing or not one of a-d."""
    pass


class CommandKind(Enum):
    """Commands a client may send."""
    START = "START"
    NEXT = "NEXT"
    ANSWER = "ANSWER"
    QUIT = "QUIT"
    UNKNOWN = "UNKNOWN"


class MessageKind(Enum):
    """Kinds of lines a server may send."""
    QUESTION = "question"
    FEEDBACK = "feedback"
    END = "end"
    NOTICE = "notice"


@dataclass(frozen=True)
class Command:
    """A parsed client command."""
    kind: CommandKind
    payload: Optional[str] = None
    raw: str = ""


@dataclass(frozen=True)
class ServerMessage:
    """A parsed server line."""
    kind: MessageKind
    payload: str


def parse_command(line: str) -> Command:
    """
    Parse one client line into a Command.

    Keywords are case-insensitive and surrounding whitespace is ignored.
    START, NEXT and QUIT take no payload; ANSWER keeps whatever follows the
    first colon (possibly nothing) for later validation.
    """
    raw = line.strip()
    keyword, separator, payload = raw.partition(":")
    keyword = keyword.strip().upper()

    if keyword == CommandKind.ANSWER.value:
        return Command(CommandKind.ANSWER, payload if separator else None, raw)

    if not separator:
        for kind in (CommandKind.START, CommandKind.NEXT, CommandKind.QUIT):
            if keyword == kind.value:
                return Command(kind, None, raw)

    return Command(CommandKind.UNKNOWN, None, raw)


def parse_answer_letter(payload: Optional[str]) -> int:
    """
    Convert an ANSWER payload into an option index.

    Raises:
        InvalidAnswerError: If the payload is missing or not a single letter a-d
    """
    if payload is None:
        raise InvalidAnswerError("Answer letter missing")

    letter = payload.strip().lower()
    if len(letter) != 1 or letter not in OPTION_LETTERS:
        raise InvalidAnswerError(f"Invalid answer letter: {payload!r}")

    return OPTION_LETTERS.index(letter)


def format_question(question: Question) -> str:
    # Separators inside the text would break the client's field split
    fields = [question.prompt, *question.options]
    return QUESTION_PREFIX + FIELD_SEPARATOR.join(
        field.replace(FIELD_SEPARATOR, ",").replace("\n", " ") for field in fields
    )


def format_feedback(correct: bool, correct_letter: str) -> str:
    if correct:
        return f"{FEEDBACK_PREFIX}Correct!"
    return f"{FEEDBACK_PREFIX}Incorrect! The correct answer was {correct_letter}"


def format_end(score: int, empty_bank: bool = False) -> str:
    if empty_bank:
        return f"{END_PREFIX}No questions available. Your final score is {score}"
    return f"{END_PREFIX}Quiz over! Your final score is {score}"


def format_invalid_command(raw: str) -> str:
    return f"Invalid command: {raw}"


def parse_server_message(line: str) -> ServerMessage:
    """Split a server line into its kind and payload."""
    line = line.rstrip("\r\n")
    for prefix, kind in (
        (QUESTION_PREFIX, MessageKind.QUESTION),
        (FEEDBACK_PREFIX, MessageKind.FEEDBACK),
        (END_PREFIX, MessageKind.END),
    ):
        if line.startswith(prefix):
            return ServerMessage(kind, line[len(prefix):])
    return ServerMessage(MessageKind.NOTICE, line)


def parse_question_payload(payload: str) -> Tuple[str, List[str]]:
    """
    Split a QUESTION payload into the prompt and its four options.

    Raises:
        ValueError: If the payload does not carry a prompt and four options
    """
    parts = payload.split(FIELD_SEPARATOR)
    if len(parts) != 1 + len(OPTION_LETTERS):
        raise ValueError(f"Malformed question payload: {payload!r}")
    return parts[0], parts[1:]
