"""
Structured logging for session and listener lifecycle events.
"""
import logging
import time
from typing import Optional


logger = logging.getLogger(__name__)


class SessionLifecycleLogger:
    """Structured logging for session lifecycle events."""

    @staticmethod
    def log_server_started(host: str, port: int, max_sessions: int, question_count: int) -> None:
        logger.info(
            f"Server lifecycle: LISTENING - {host}:{port}, {max_sessions} session slots, "
            f"{question_count} questions",
            extra={
                'event_type': 'server_listening',
                'host': host,
                'port': port,
                'max_sessions': max_sessions,
                'question_count': question_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_server_stopped(cancelled_sessions: int) -> None:
        logger.info(
            f"Server lifecycle: STOPPED - {cancelled_sessions} sessions cancelled",
            extra={
                'event_type': 'server_stopped',
                'cancelled_sessions': cancelled_sessions,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_slot_wait(peer: str, active: int, limit: int) -> None:
        """Log a connection queued behind a saturated session pool."""
        logger.info(
            f"Session lifecycle: WAITING_FOR_SLOT - Peer {peer}, {active}/{limit} slots busy",
            extra={
                'event_type': 'session_slot_wait',
                'peer': peer,
                'active_sessions': active,
                'max_sessions': limit,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_session_opened(peer: str) -> float:
        """Log the start of a session and return its start time."""
        opened_at = time.time()
        logger.info(
            f"Session lifecycle: OPENED - Peer {peer}",
            extra={
                'event_type': 'session_opened',
                'peer': peer,
                'timestamp': opened_at
            }
        )
        return opened_at

    @staticmethod
    def log_session_finished(peer: str, score: int, total: int, opened_at: float) -> None:
        duration = time.time() - opened_at
        logger.info(
            f"Session lifecycle: FINISHED - Peer {peer}, Score {score}/{total}, Duration {duration:.3f}s",
            extra={
                'event_type': 'session_finished',
                'peer': peer,
                'score': score,
                'total_questions': total,
                'duration': duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_connection_lost(peer: str, reason: str, state: Optional[str] = None) -> None:
        logger.warning(
            f"Session lifecycle: CONNECTION_LOST - Peer {peer}, Reason: {reason}"
            + (f" (state {state})" if state else ""),
            extra={
                'event_type': 'session_connection_lost',
                'peer': peer,
                'reason': reason,
                'state': state,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_invariant_violation(peer: str, error_message: str) -> None:
        logger.error(
            f"Session lifecycle: INVARIANT_VIOLATION - Peer {peer}: {error_message}",
            extra={
                'event_type': 'session_invariant_violation',
                'peer': peer,
                'error_message': error_message,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_session_error(peer: str, error_type: str, error_message: str) -> None:
        logger.error(
            f"Session lifecycle: ERROR - Peer {peer}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'session_error',
                'peer': peer,
                'error_type': error_type,
                'error_message': error_message,
                'timestamp': time.time()
            }
        )
