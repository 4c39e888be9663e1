"""
Per-connection quiz session state machine.
"""
import logging
from typing import List

from .models import SessionState
from .protocol import (
    INVALID_ANSWER_MESSAGE,
    Command,
    CommandKind,
    InvalidAnswerError,
    format_end,
    format_feedback,
    format_invalid_command,
    format_question,
    parse_answer_letter,
    parse_command,
)
from .question_bank import QuestionBank


class QuizSession:
    """
    Drives one client through the question bank.

    A session is owned by exactly one runner and is never shared, so it
    carries no locking. The question bank it reads is immutable.

    States advance AWAITING_START -> AWAITING_ANSWER <-> AWAITING_NEXT -> FINISHED,
    with QUIT jumping straight to FINISHED from any non-terminal state.
    """

    def __init__(self, bank: QuestionBank, session_id: str = ""):
        """
        Initialize a session at the first question.

        Args:
            bank: Shared read-only question bank
            session_id: Identifier used in log messages
        """
        self.logger = logging.getLogger(__name__)
        self._bank = bank
        self.session_id = session_id
        self.current_index = 0
        self.score = 0
        self.answers_given = 0
        self.state = SessionState.AWAITING_START

    @property
    def is_finished(self) -> bool:
        return self.state is SessionState.FINISHED

    @property
    def total_questions(self) -> int:
        return self._bank.size()

    def handle(self, line: str) -> List[str]:
        """
        Process one client line and return the response lines.

        Args:
            line: Raw command line from the client

        Returns:
            Lines to send back; empty once the session is finished

        Raises:
            QuestionNotFoundError: If the state machine ever reads past the bank
        """
        if self.is_finished:
            return []

        command = parse_command(line)
        previous_state = self.state

        if command.kind is CommandKind.QUIT:
            responses = self._finish()
        elif command.kind is CommandKind.START and self.state is SessionState.AWAITING_START:
            responses = self._start()
        elif command.kind is CommandKind.ANSWER and self.state is SessionState.AWAITING_ANSWER:
            responses = self._answer(command)
        elif command.kind is CommandKind.NEXT and self.state is SessionState.AWAITING_NEXT:
            responses = self._next()
        else:
            responses = [format_invalid_command(command.raw)]

        if self.state is not previous_state:
            self.logger.debug(
                f"Session {self.session_id}: {previous_state.name} -> {self.state.name} "
                f"on {command.kind.name}"
            )
        return responses

    def _start(self) -> List[str]:
        if self._bank.size() == 0:
            self.state = SessionState.FINISHED
            return [format_end(self.score, empty_bank=True)]

        self.state = SessionState.AWAITING_ANSWER
        return [format_question(self._bank.get(self.current_index))]

    def _answer(self, command: Command) -> List[str]:
        try:
            choice = parse_answer_letter(command.payload)
        except InvalidAnswerError as e:
            self.logger.debug(f"Session {self.session_id}: rejected answer: {e}")
            return [INVALID_ANSWER_MESSAGE]

        question = self._bank.get(self.current_index)
        correct = choice == question.correct_index
        if correct:
            self.score += 1
        self.answers_given += 1
        self.state = SessionState.AWAITING_NEXT
        return [format_feedback(correct, question.correct_letter)]

    def _next(self) -> List[str]:
        self.current_index += 1
        if self.current_index < self._bank.size():
            self.state = SessionState.AWAITING_ANSWER
            return [format_question(self._bank.get(self.current_index))]
        return self._finish()

    def _finish(self) -> List[str]:
        self.state = SessionState.FINISHED
        return [format_end(self.score)]
