"""
Plain-JSON shape of the document model.

Keys are camelCase to stay compatible with stores written by the web
editor. Dates are written as ISO-8601 strings and must be re-hydrated on
load: a bare json.loads() leaves them as strings.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from ..errors import UnsupportedQuestionTypeError
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


def format_datetime(value: datetime) -> str:
    return value.isoformat()


def parse_datetime(value: Any) -> datetime:
    """Re-hydrate a stored date; missing values become 'now'."""
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now()
    text = str(value)
    # fromisoformat() only accepts a 'Z' suffix from 3.11 on
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


# =============================================================================
# Questions
# =============================================================================


def _answer_to_dict(answer: Answer) -> dict:
    return {
        "id": answer.id,
        "text": answer.text,
        "fraction": answer.fraction,
        "feedback": answer.feedback,
    }


def _answer_from_dict(data: dict) -> Answer:
    answer = Answer(
        text=data.get("text", ""),
        fraction=data.get("fraction", 0),
        feedback=data.get("feedback") or "",
    )
    if data.get("id"):
        answer.id = data["id"]
    return answer


def _pair_from_dict(data: dict) -> MatchingPair:
    pair = MatchingPair(text=data.get("text", ""), answer_text=data.get("answerText", ""))
    if data.get("id"):
        pair.id = data["id"]
    return pair


def _mcq_fields(q: McqQuestion) -> dict:
    return {
        "single": q.single,
        "shuffleAnswers": q.shuffle_answers,
        "answers": [_answer_to_dict(a) for a in q.answers],
        "correctFeedback": q.correct_feedback,
        "partiallyCorrectFeedback": q.partially_correct_feedback,
        "incorrectFeedback": q.incorrect_feedback,
    }


def _truefalse_fields(q: TrueFalseQuestion) -> dict:
    return {
        "correctAnswer": q.correct_answer,
        "trueFeedback": q.true_feedback,
        "falseFeedback": q.false_feedback,
    }


def _shortanswer_fields(q: ShortAnswerQuestion) -> dict:
    return {
        "caseSensitive": q.case_sensitive,
        # legacy duplicate of caseSensitive still read by older stores
        "useCase": q.case_sensitive,
        "answers": [_answer_to_dict(a) for a in q.answers],
    }


def _matching_fields(q: MatchingQuestion) -> dict:
    return {
        "shuffleAnswers": q.shuffle_answers,
        "subquestions": [
            {"id": s.id, "text": s.text, "answerText": s.answer_text}
            for s in q.subquestions
        ],
    }


_FIELD_WRITERS: dict[QuestionType, Callable[[Any], dict]] = {
    QuestionType.MCQ: _mcq_fields,
    QuestionType.TRUE_FALSE: _truefalse_fields,
    QuestionType.SHORT_ANSWER: _shortanswer_fields,
    QuestionType.MATCHING: _matching_fields,
}


def question_to_dict(question: Question) -> dict:
    """Serialize a question to its JSON shape."""
    writer = _FIELD_WRITERS.get(getattr(question, "type", None))
    if writer is None:
        raise UnsupportedQuestionTypeError(getattr(question, "type", type(question).__name__))

    data = {
        "id": question.id,
        "type": question.type.value,
        "title": question.title,
        "text": question.text,
        "defaultGrade": question.default_grade,
        "penalty": question.penalty,
        "generalFeedback": question.general_feedback,
        "tags": list(question.tags),
        "created": format_datetime(question.created),
        "modified": format_datetime(question.modified),
    }
    data.update(writer(question))
    return data


def question_from_dict(data: dict) -> Question:
    """Rebuild a question from its JSON shape, re-hydrating dates."""
    try:
        question_type = QuestionType(data.get("type"))
    except ValueError:
        raise UnsupportedQuestionTypeError(data.get("type")) from None

    base = {
        "title": data.get("title", ""),
        "text": data.get("text", ""),
        "default_grade": data.get("defaultGrade", 1),
        "penalty": data.get("penalty", 0),
        "general_feedback": data.get("generalFeedback") or "",
        "tags": list(data.get("tags") or []),
        "created": parse_datetime(data.get("created")),
        "modified": parse_datetime(data.get("modified")),
    }

    if question_type is QuestionType.MCQ:
        question: Question = McqQuestion(
            **base,
            single=data.get("single", True),
            shuffle_answers=data.get("shuffleAnswers", False),
            answers=[_answer_from_dict(a) for a in data.get("answers", [])],
            correct_feedback=data.get("correctFeedback") or "",
            partially_correct_feedback=data.get("partiallyCorrectFeedback") or "",
            incorrect_feedback=data.get("incorrectFeedback") or "",
        )
    elif question_type is QuestionType.TRUE_FALSE:
        question = TrueFalseQuestion(
            **base,
            correct_answer=data.get("correctAnswer", True),
            true_feedback=data.get("trueFeedback") or "",
            false_feedback=data.get("falseFeedback") or "",
        )
    elif question_type is QuestionType.SHORT_ANSWER:
        question = ShortAnswerQuestion(
            **base,
            case_sensitive=data.get("caseSensitive", data.get("useCase", False)),
            answers=[_answer_from_dict(a) for a in data.get("answers", [])],
        )
    else:
        question = MatchingQuestion(
            **base,
            shuffle_answers=data.get("shuffleAnswers", False),
            subquestions=[_pair_from_dict(s) for s in data.get("subquestions", [])],
        )

    if data.get("id"):
        question.id = data["id"]
    return question


# =============================================================================
# Quizzes
# =============================================================================


def _settings_to_dict(settings: QuizSettings) -> dict:
    data = {
        "shuffle": settings.shuffle,
        "gradingMethod": settings.grading_method.value,
        "showFeedback": settings.show_feedback,
        "showCorrectAnswers": settings.show_correct_answers,
    }
    if settings.time_limit is not None:
        data["timeLimit"] = settings.time_limit
    if settings.attempts is not None:
        data["attempts"] = settings.attempts
    return data


def _settings_from_dict(data: dict | None) -> QuizSettings:
    data = data or {}
    return QuizSettings(
        shuffle=data.get("shuffle", False),
        time_limit=data.get("timeLimit"),
        attempts=data.get("attempts"),
        grading_method=GradingMethod(data.get("gradingMethod", GradingMethod.HIGHEST.value)),
        show_feedback=data.get("showFeedback", True),
        show_correct_answers=data.get("showCorrectAnswers", True),
    )


def quiz_to_dict(quiz: Quiz) -> dict:
    """Serialize a quiz and all its questions."""
    data = {
        "id": quiz.id,
        "name": quiz.name,
        "category": quiz.category,
        "questions": [question_to_dict(q) for q in quiz.questions],
        "created": format_datetime(quiz.created),
        "modified": format_datetime(quiz.modified),
        "settings": _settings_to_dict(quiz.settings),
    }
    if quiz.description is not None:
        data["description"] = quiz.description
    return data


def quiz_from_dict(data: dict) -> Quiz:
    """Rebuild a quiz from its JSON shape, re-hydrating every date."""
    quiz = Quiz(
        name=data.get("name", ""),
        description=data.get("description"),
        category=data.get("category", "Default"),
        questions=[question_from_dict(q) for q in data.get("questions", [])],
        created=parse_datetime(data.get("created")),
        modified=parse_datetime(data.get("modified")),
        settings=_settings_from_dict(data.get("settings")),
    )
    if data.get("id"):
        quiz.id = data["id"]
    return quiz
