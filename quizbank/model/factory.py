"""
Factories producing minimal, valid-shape questions and empty quizzes.

Empty questions are not valid yet (blank title and text); they give the
editing surface the right structure to fill in.
"""

from __future__ import annotations

from ..errors import UnsupportedQuestionTypeError
from .types import (
    Answer,
    MatchingPair,
    MatchingQuestion,
    McqQuestion,
    Question,
    QuestionType,
    Quiz,
    QuizSettings,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)


def create_empty_question(question_type: QuestionType | str) -> Question:
    """Create a blank question of the given type with default structure."""
    try:
        question_type = QuestionType(question_type)
    except ValueError:
        raise UnsupportedQuestionTypeError(question_type) from None

    if question_type is QuestionType.MCQ:
        return McqQuestion(
            single=True,
            shuffle_answers=False,
            answers=[Answer(fraction=100), Answer(fraction=0)],
        )
    if question_type is QuestionType.TRUE_FALSE:
        return TrueFalseQuestion(correct_answer=True)
    if question_type is QuestionType.SHORT_ANSWER:
        return ShortAnswerQuestion(case_sensitive=False, answers=[Answer(fraction=100)])
    if question_type is QuestionType.MATCHING:
        return MatchingQuestion(
            shuffle_answers=False,
            subquestions=[MatchingPair(), MatchingPair()],
        )
    raise UnsupportedQuestionTypeError(question_type)


def create_quiz(name: str, description: str | None = None, category: str = "Default") -> Quiz:
    """Create a quiz with no questions and default delivery settings."""
    return Quiz(
        name=name,
        description=description,
        category=category,
        settings=QuizSettings(),
    )
