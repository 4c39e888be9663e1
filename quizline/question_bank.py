"""
Read-only question bank shared by every quiz session.
"""
import json
import logging
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union

from .models import OPTION_LETTERS, Question


logger = logging.getLogger(__name__)


class QuestionNotFoundError(IndexError):
    """Raised when a question index falls outside the bank."""
    pass


class QuestionBankError(ValueError):
    """Raised when a question file cannot be loaded or has an invalid structure."""
    pass


class QuestionBank:
    """
    Immutable, ordered collection of questions.

    The bank is built once at startup and never mutated afterwards, so any
    number of sessions may read it concurrently without locking.
    """

    def __init__(self, questions: Iterable[Question]):
        self._questions: Tuple[Question, ...] = tuple(questions)

    def get(self, index: int) -> Question:
        """
        Get the question at the given position.

        Args:
            index: Zero-based question index

        Returns:
            The Question at that index

        Raises:
            QuestionNotFoundError: If index is outside [0, size())
        """
        if not 0 <= index < len(self._questions):
            raise QuestionNotFoundError(
                f"Question index {index} out of range for bank of {len(self._questions)}"
            )
        return self._questions[index]

    def size(self) -> int:
        """Number of questions in the bank."""
        return len(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)


DEFAULT_QUESTIONS = (
    Question(
        "Which transport protocol provides reliable, ordered delivery?",
        ("UDP", "TCP", "ICMP", "ARP"),
        1,
    ),
    Question(
        "What is the default port for HTTP?",
        ("80", "21", "443", "25"),
        0,
    ),
    Question(
        "Which layer of the OSI model handles routing?",
        ("Data link", "Transport", "Session", "Network"),
        3,
    ),
    Question(
        "What does DNS translate into IP addresses?",
        ("MAC addresses", "Port numbers", "Host names", "Subnet masks"),
        2,
    ),
    Question(
        "Which address is the IPv4 loopback address?",
        ("192.168.0.1", "127.0.0.1", "10.0.0.1", "0.0.0.0"),
        1,
    ),
)


def default_question_bank() -> QuestionBank:
    """Build the built-in question bank."""
    return QuestionBank(DEFAULT_QUESTIONS)


def validate_quiz_structure(data: dict) -> None:
    """
    Validate that JSON data has the correct question file structure.

    Expected structure:
    {
        "quiz": [
            {
                "question": str,
                "options": [str, str, str, str],
                "answer": "a" | "b" | "c" | "d"
            }
        ]
    }

    Raises:
        QuestionBankError: Describing the first problem found
    """
    if not isinstance(data, dict):
        raise QuestionBankError("Question data must be a JSON object")

    if "quiz" not in data:
        raise QuestionBankError("Question data must contain a 'quiz' key")

    quiz_array = data["quiz"]
    if not isinstance(quiz_array, list):
        raise QuestionBankError("'quiz' value must be an array")

    for i, question_data in enumerate(quiz_array):
        if not isinstance(question_data, dict):
            raise QuestionBankError(f"Question {i} must be an object")

        for field_name in ("question", "options", "answer"):
            if field_name not in question_data:
                raise QuestionBankError(f"Question {i} missing '{field_name}' field")

        if not isinstance(question_data["question"], str):
            raise QuestionBankError(f"Question {i} 'question' field must be a string")

        options = question_data["options"]
        if (not isinstance(options, list) or len(options) != len(OPTION_LETTERS)
                or not all(isinstance(option, str) for option in options)):
            raise QuestionBankError(
                f"Question {i} 'options' field must be an array of {len(OPTION_LETTERS)} strings"
            )

        answer = question_data["answer"]
        if not isinstance(answer, str) or answer.strip().lower() not in OPTION_LETTERS:
            raise QuestionBankError(f"Question {i} 'answer' field must be one of a, b, c, d")


def load_question_bank(file_path: Union[str, Path]) -> QuestionBank:
    """
    Load a question bank from a JSON file.

    Args:
        file_path: Path to the JSON question file

    Returns:
        QuestionBank holding the file's questions in order

    Raises:
        QuestionBankError: If the file cannot be read or is invalid
    """
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise QuestionBankError(f"Invalid JSON in {file_path}: {e}") from e
    except OSError as e:
        raise QuestionBankError(f"Failed to read question file {file_path}: {e}") from e

    validate_quiz_structure(data)

    questions = [
        Question(
            prompt=entry["question"],
            options=entry["options"],
            correct_index=OPTION_LETTERS.index(entry["answer"].strip().lower()),
        )
        for entry in data["quiz"]
    ]
    logger.info(f"Loaded {len(questions)} questions from {file_path}")
    return QuestionBank(questions)
