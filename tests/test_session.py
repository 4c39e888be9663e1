"""
Unit tests for the QuizSession state machine.
"""
import unittest
from unittest.mock import patch

from quizline.models import SessionState
from quizline.protocol import INVALID_ANSWER_MESSAGE
from quizline.question_bank import QuestionBank, QuestionNotFoundError
from quizline.session import QuizSession
from tests.test_fixtures import TestFixtures


class TestQuizSession(unittest.TestCase):
    """Test cases for session transitions."""

    def setUp(self):
        self.bank = TestFixtures.create_two_question_bank()
        self.session = QuizSession(self.bank, session_id="test")

    def test_initial_state(self):
        self.assertEqual(self.session.state, SessionState.AWAITING_START)
        self.assertEqual(self.session.current_index, 0)
        self.assertEqual(self.session.score, 0)

    def test_start_emits_first_question(self):
        responses = self.session.handle("START")

        self.assertEqual(responses, ["QUESTION:Which protocol is connection-oriented?;TCP;UDP;IP;ICMP"])
        self.assertEqual(self.session.state, SessionState.AWAITING_ANSWER)

    def test_correct_answer_increments_score(self):
        self.session.handle("START")
        responses = self.session.handle("ANSWER:a")

        self.assertEqual(responses, ["FEEDBACK:Correct!"])
        self.assertEqual(self.session.score, 1)
        self.assertEqual(self.session.state, SessionState.AWAITING_NEXT)

    def test_wrong_answer_reveals_correct_letter(self):
        self.session.handle("START")
        responses = self.session.handle("ANSWER:c")

        self.assertEqual(responses, ["FEEDBACK:Incorrect! The correct answer was a"])
        self.assertEqual(self.session.score, 0)
        self.assertEqual(self.session.state, SessionState.AWAITING_NEXT)

    def test_answer_letter_case_insensitive(self):
        self.session.handle("start")
        responses = self.session.handle("answer:A")

        self.assertEqual(responses, ["FEEDBACK:Correct!"])
        self.assertEqual(self.session.score, 1)

    def test_malformed_answer_does_not_advance(self):
        self.session.handle("START")
        for line in ("ANSWER:", "ANSWER", "ANSWER:e", "ANSWER:ab"):
            with self.subTest(line=line):
                self.assertEqual(self.session.handle(line), [INVALID_ANSWER_MESSAGE])
                self.assertEqual(self.session.state, SessionState.AWAITING_ANSWER)
        self.assertEqual(self.session.answers_given, 0)

    def test_second_answer_rejected(self):
        self.session.handle("START")
        self.session.handle("ANSWER:a")
        responses = self.session.handle("ANSWER:a")

        self.assertEqual(responses, ["Invalid command: ANSWER:a"])
        self.assertEqual(self.session.score, 1)
        self.assertEqual(self.session.state, SessionState.AWAITING_NEXT)

    def test_commands_in_wrong_state_are_invalid(self):
        self.assertEqual(self.session.handle("NEXT"), ["Invalid command: NEXT"])
        self.assertEqual(self.session.handle("ANSWER:a"), ["Invalid command: ANSWER:a"])
        self.assertEqual(self.session.state, SessionState.AWAITING_START)

        self.session.handle("START")
        self.assertEqual(self.session.handle("START"), ["Invalid command: START"])
        self.assertEqual(self.session.handle("NEXT"), ["Invalid command: NEXT"])
        self.assertEqual(self.session.state, SessionState.AWAITING_ANSWER)

    def test_unknown_command(self):
        self.assertEqual(self.session.handle("hello"), ["Invalid command: hello"])
        self.assertEqual(self.session.state, SessionState.AWAITING_START)

    def test_full_scenario(self):
        responses = []
        for line in ("START", "ANSWER:a", "NEXT", "ANSWER:a", "NEXT"):
            responses.extend(self.session.handle(line))

        self.assertEqual(responses, TestFixtures.two_question_transcript()[1:])
        self.assertTrue(self.session.is_finished)
        self.assertEqual(self.session.current_index, self.bank.size())

    def test_quit_after_start(self):
        self.session.handle("START")
        responses = self.session.handle("QUIT")

        self.assertEqual(responses, ["END:Quiz over! Your final score is 0"])
        self.assertTrue(self.session.is_finished)

    def test_quit_before_start(self):
        self.assertEqual(self.session.handle("quit"), ["END:Quiz over! Your final score is 0"])
        self.assertTrue(self.session.is_finished)

    def test_quit_keeps_score(self):
        self.session.handle("START")
        self.session.handle("ANSWER:a")
        self.assertEqual(self.session.handle("QUIT"), ["END:Quiz over! Your final score is 1"])

    def test_finished_ignores_input(self):
        self.session.handle("QUIT")
        snapshot = (self.session.state, self.session.current_index, self.session.score)

        for line in ("START", "NEXT", "ANSWER:a", "QUIT", "junk"):
            self.assertEqual(self.session.handle(line), [])
        self.assertEqual(
            (self.session.state, self.session.current_index, self.session.score),
            snapshot
        )

    def test_empty_bank_finishes_on_start(self):
        session = QuizSession(QuestionBank([]))
        responses = session.handle("START")

        self.assertEqual(responses, ["END:No questions available. Your final score is 0"])
        self.assertTrue(session.is_finished)
        self.assertEqual(session.current_index, 0)

    def test_index_and_score_invariants(self):
        bank = QuestionBank(TestFixtures.create_sample_questions())
        session = QuizSession(bank)
        script = [
            "NEXT", "START", "ANSWER:b", "ANSWER:b", "NEXT", "junk", "ANSWER:z",
            "ANSWER:a", "NEXT", "ANSWER:a", "NEXT", "NEXT", "START",
        ]

        last_index, last_score = 0, 0
        for line in script:
            session.handle(line)
            self.assertGreaterEqual(session.current_index, last_index)
            self.assertLessEqual(session.current_index, bank.size())
            self.assertGreaterEqual(session.score, last_score)
            self.assertLessEqual(session.score, session.answers_given)
            last_index, last_score = session.current_index, session.score

        self.assertTrue(session.is_finished)
        self.assertEqual(session.score, 2)

    def test_out_of_range_read_propagates(self):
        self.session.handle("START")
        with patch.object(self.bank, 'get', side_effect=QuestionNotFoundError("boom")):
            with self.assertRaises(QuestionNotFoundError):
                self.session.handle("ANSWER:a")


if __name__ == '__main__':
    unittest.main()
