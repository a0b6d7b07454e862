"""
Quiz editor: the single writer for quiz mutation.

Holds the current quiz and the selected question, validates questions
before they are persisted, and pushes every change to the injected
repository. Mutations are serialized under a lock so concurrent callers
cannot interleave partial updates.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime

from loguru import logger

from ..errors import (
    NoCurrentQuizError,
    QuestionNotFoundError,
    QuestionValidationError,
    QuizNotFoundError,
)
from ..model.factory import create_quiz
from ..model.types import Question, Quiz
from ..model.utils import generate_id
from ..validation import errors_only, validate_question
from .repository import QuizRepository


class QuizEditor:
    """Edit quizzes held by a repository."""

    def __init__(self, repository: QuizRepository):
        self.repository = repository
        self.selected_question_id: str | None = None
        self._lock = threading.RLock()

    @property
    def current_quiz(self) -> Quiz | None:
        return self.repository.get_current_quiz()

    def _require_current(self) -> Quiz:
        quiz = self.repository.get_current_quiz()
        if quiz is None:
            raise NoCurrentQuizError("No quiz is loaded")
        return quiz

    def _check(self, question: Question) -> None:
        errors = errors_only(validate_question(question))
        if errors:
            logger.warning(f"Rejected question {question.id}: {len(errors)} error(s)")
            raise QuestionValidationError(errors)

    def _commit(self, quiz: Quiz) -> None:
        self.repository.save_quiz(quiz)
        self.repository.set_current_quiz(quiz)

    # ========================================
    # Quizzes
    # ========================================

    def create_quiz(self, name: str, description: str | None = None, category: str = "Default") -> Quiz:
        """Create, save and load a new empty quiz."""
        with self._lock:
            quiz = create_quiz(name, description, category)
            self._commit(quiz)
            self.selected_question_id = None
            logger.info(f"Created quiz '{name}' ({quiz.id})")
            return quiz

    def load_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self.repository.get_quiz(quiz_id)
            if quiz is None:
                raise QuizNotFoundError(quiz_id)
            self.repository.set_current_quiz(quiz)
            self.selected_question_id = None
            return quiz

    def update_quiz(self, quiz: Quiz) -> Quiz:
        """Replace the current quiz with an edited copy and persist it."""
        with self._lock:
            self._commit(quiz)
            return quiz

    def save_current_quiz(self) -> Quiz:
        with self._lock:
            quiz = self._require_current()
            self._commit(quiz)
            return quiz

    def delete_quiz(self, quiz_id: str) -> None:
        with self._lock:
            current = self.repository.get_current_quiz()
            self.repository.delete_quiz(quiz_id)
            if current is not None and current.id == quiz_id:
                self.selected_question_id = None
            logger.info(f"Deleted quiz {quiz_id}")

    def list_quizzes(self) -> list[Quiz]:
        return self.repository.get_quizzes()

    # ========================================
    # Questions
    # ========================================

    def add_question(self, question: Question) -> Question:
        """Validate and append a question to the current quiz."""
        with self._lock:
            quiz = self._require_current()
            self._check(question)
            question.touch()
            quiz.questions.append(question)
            self._commit(quiz)
            return question

    def update_question(self, question: Question) -> Question:
        """Validate and replace the question with the same id."""
        with self._lock:
            quiz = self._require_current()
            self._check(question)
            question.touch()
            quiz.questions = [
                question if existing.id == question.id else existing
                for existing in quiz.questions
            ]
            self._commit(quiz)
            return question

    def delete_question(self, question_id: str) -> None:
        with self._lock:
            quiz = self._require_current()
            quiz.questions = [q for q in quiz.questions if q.id != question_id]
            if self.selected_question_id == question_id:
                self.selected_question_id = None
            self._commit(quiz)

    def move_question(self, from_index: int, to_index: int) -> None:
        """Move the question at from_index so it ends up at to_index."""
        with self._lock:
            quiz = self._require_current()
            count = len(quiz.questions)
            if not (0 <= from_index < count and 0 <= to_index < count):
                raise IndexError(
                    f"Cannot move question {from_index} to {to_index}: quiz has {count} question(s)"
                )
            if from_index == to_index:
                return
            question = quiz.questions.pop(from_index)
            quiz.questions.insert(to_index, question)
            self._commit(quiz)

    def duplicate_question(self, question_id: str) -> Question:
        """
        Copy a question of the current quiz and insert the copy right after it.

        The copy gets fresh ids (question, answers and pairs) and fresh
        timestamps; everything else is a deep copy of the original.
        """
        with self._lock:
            quiz = self._require_current()
            index = next(
                (i for i, q in enumerate(quiz.questions) if q.id == question_id), None
            )
            if index is None:
                raise QuestionNotFoundError(question_id)

            duplicate = copy.deepcopy(quiz.questions[index])
            duplicate.id = generate_id()
            for item in [*getattr(duplicate, "answers", []), *getattr(duplicate, "subquestions", [])]:
                item.id = generate_id()
            duplicate.created = duplicate.modified = datetime.now()

            quiz.questions.insert(index + 1, duplicate)
            self._commit(quiz)
            logger.debug(f"Duplicated question {question_id} as {duplicate.id}")
            return duplicate

    def select_question(self, question_id: str | None) -> None:
        with self._lock:
            self.selected_question_id = question_id

    @property
    def selected_question(self) -> Question | None:
        quiz = self.repository.get_current_quiz()
        if quiz is None or self.selected_question_id is None:
            return None
        return quiz.find_question(self.selected_question_id)
