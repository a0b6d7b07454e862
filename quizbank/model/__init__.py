"""
Document model: quizzes, the four question kinds, factories and JSON shape.
"""

from .factory import create_empty_question, create_quiz
from .serialization import (
    question_from_dict,
    question_to_dict,
    quiz_from_dict,
    quiz_to_dict,
)
from .types import (
    Answer,
    GradingMethod,
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
from .utils import format_bool, format_number, generate_id

__all__ = [
    "Answer",
    "GradingMethod",
    "MatchingPair",
    "MatchingQuestion",
    "McqQuestion",
    "Question",
    "QuestionType",
    "Quiz",
    "QuizSettings",
    "ShortAnswerQuestion",
    "TrueFalseQuestion",
    "create_empty_question",
    "create_quiz",
    "format_bool",
    "format_number",
    "generate_id",
    "question_from_dict",
    "question_to_dict",
    "quiz_from_dict",
    "quiz_to_dict",
]
