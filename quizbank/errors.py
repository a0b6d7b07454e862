"""
Exception types raised by quizbank.

Codecs report expected malformed input through their result objects;
these exceptions cover programming errors and collaborator failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import ValidationIssue


class QuizbankError(Exception):
    """Base class for all quizbank errors."""
    pass


class UnsupportedQuestionTypeError(QuizbankError):
    """Raised when a question type has no handler."""

    def __init__(self, question_type: object):
        self.question_type = question_type
        super().__init__(f"Unsupported question type: {question_type}")


class QuestionValidationError(QuizbankError):
    """Raised when a question with error-severity issues is persisted."""

    def __init__(self, issues: list["ValidationIssue"]):
        self.issues = issues
        details = "; ".join(f"{i.field}: {i.message}" for i in issues)
        super().__init__(f"Question is invalid: {details}")


class QuizNotFoundError(QuizbankError):
    """Raised when a quiz id is not in the repository."""

    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Quiz not found: {quiz_id}")


class NoCurrentQuizError(QuizbankError):
    """Raised when a question mutation is attempted with no quiz loaded."""
    pass


class StoreImportError(QuizbankError):
    """Raised when a store backup cannot be imported."""
    pass


class QuestionNotFoundError(QuizbankError):
    """Raised when a question id is not in the current quiz."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question not found: {question_id}")
