"""
Document model for quizzes and their four question kinds.

Question kinds form a closed set (QuestionType). Each kind is a dataclass
subclass of Question carrying its own class-level ``type`` tag, so every
consumer can dispatch on ``question.type`` and reject anything else.

Invariants (non-empty title, fraction sums, ...) are not enforced here;
see quizbank.validation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar

from .utils import generate_id


class QuestionType(str, Enum):
    """Supported question kinds."""
    MCQ = "mcq"
    TRUE_FALSE = "truefalse"
    SHORT_ANSWER = "shortanswer"
    MATCHING = "matching"


class GradingMethod(str, Enum):
    """How multiple attempts at a quiz are graded."""
    HIGHEST = "highest"
    AVERAGE = "average"
    FIRST = "first"
    LAST = "last"


# =============================================================================
# Answers
# =============================================================================


@dataclass
class Answer:
    """A graded answer option (MCQ choice or accepted short answer)."""

    text: str = ""
    fraction: float = 0  # percent of the question's grade, 0-100
    feedback: str = ""
    id: str = field(default_factory=generate_id)


@dataclass
class MatchingPair:
    """Left item of a matching question and its single correct right item."""

    text: str = ""
    answer_text: str = ""
    id: str = field(default_factory=generate_id)


# =============================================================================
# Questions
# =============================================================================


@dataclass
class Question:
    """Fields shared by every question kind."""

    type: ClassVar[QuestionType]

    id: str = field(default_factory=generate_id)
    title: str = ""
    text: str = ""
    default_grade: float = 1
    penalty: float = 0  # percent deducted per extra attempt, 0-100
    general_feedback: str = ""
    tags: list[str] = field(default_factory=list)
    created: datetime = field(default_factory=datetime.now)
    modified: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        """Stamp the modification time."""
        self.modified = datetime.now()


@dataclass
class McqQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.MCQ

    single: bool = True
    shuffle_answers: bool = False
    answers: list[Answer] = field(default_factory=list)
    correct_feedback: str = ""
    partially_correct_feedback: str = ""
    incorrect_feedback: str = ""


@dataclass
class TrueFalseQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.TRUE_FALSE

    correct_answer: bool = True
    true_feedback: str = ""
    false_feedback: str = ""


@dataclass
class ShortAnswerQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.SHORT_ANSWER

    case_sensitive: bool = False
    answers: list[Answer] = field(default_factory=list)


@dataclass
class MatchingQuestion(Question):
    type: ClassVar[QuestionType] = QuestionType.MATCHING

    shuffle_answers: bool = False
    subquestions: list[MatchingPair] = field(default_factory=list)


# =============================================================================
# Quiz
# =============================================================================


@dataclass
class QuizSettings:
    """Delivery settings of a quiz."""

    shuffle: bool = False
    time_limit: int | None = None  # minutes
    attempts: int | None = None
    grading_method: GradingMethod = GradingMethod.HIGHEST
    show_feedback: bool = True
    show_correct_answers: bool = True


@dataclass
class Quiz:
    """An ordered collection of questions exported as one question bank."""

    name: str
    id: str = field(default_factory=generate_id)
    description: str | None = None
    category: str = "Default"
    questions: list[Question] = field(default_factory=list)
    created: datetime = field(default_factory=datetime.now)
    modified: datetime = field(default_factory=datetime.now)
    settings: QuizSettings = field(default_factory=QuizSettings)

    def touch(self) -> None:
        """Stamp the modification time."""
        self.modified = datetime.now()

    def find_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None
