"""
Submission and validation errors.

Each error carries the terminal state the submission reached and a short
Portuguese message that is safe to show to the team.
"""

from enum import Enum


class SubmissionState(str, Enum):
    """Per (team, station) submission states."""

    UNATTEMPTED = "unattempted"
    PENDING_VALIDATION = "pending_validation"
    REJECTED = "rejected"
    DUPLICATE_REJECTED = "duplicate_rejected"
    COMMITTED = "committed"


MSG_INVALID_PIN = "PIN incorreto."
MSG_INVALID_POINTS = "Pontuação inválida. Use 0 ou 100."
MSG_PIN_NOT_CONFIGURED = "PIN do posto não configurado."
MSG_DUPLICATE = "Jogo já registado para esta equipa."


class SubmissionError(Exception):
    """Base exception for rejected submissions."""

    state = SubmissionState.REJECTED
    default_message = "Submissão rejeitada."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SubmissionError):
    """Wrong PIN or a point value outside the allowed set."""

    default_message = MSG_INVALID_PIN


class StationConfigurationError(SubmissionError):
    """The station has no PIN record; shown like a validation error."""

    default_message = MSG_PIN_NOT_CONFIGURED


class DuplicateSubmissionError(SubmissionError):
    """The team already holds a submission for this station."""

    state = SubmissionState.DUPLICATE_REJECTED
    default_message = MSG_DUPLICATE


class TransactionConflictError(DuplicateSubmissionError):
    """Another device committed the same pair first."""
    pass
