"""
Score evaluation for quiz previews.

score_question() grades one submitted answer; score_attempt() sums a whole
attempt. The expected answer shape depends on the question kind:

- mcq (single)   : selected answer id (str)
- mcq (multiple) : iterable of selected answer ids (non-string items ignored)
- truefalse      : bool
- shortanswer    : submitted text
- matching       : mapping of subquestion id -> chosen answer text

A missing answer (None) scores 0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable

from .errors import UnsupportedQuestionTypeError
from .model.types import (
    MatchingQuestion,
    McqQuestion,
    Question,
    QuestionType,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)

# Deducted for each wrong option selected on a multiple-answer MCQ
WRONG_SELECTION_PENALTY = 0.5


@dataclass
class ScoreResult:
    """Score of a single question."""
    score: float
    max_score: float


@dataclass
class AttemptScore:
    """Aggregated score of a quiz attempt."""
    score: float
    max_score: float
    percentage: int


Scorer = Callable[[Question, Any], ScoreResult]

# Scorer registry - populated by @register_scorer
SCORERS: dict[QuestionType, Scorer] = {}


def register_scorer(question_type: QuestionType):
    """Decorator to register the scorer of a question kind."""
    def decorator(func: Scorer) -> Scorer:
        SCORERS[question_type] = func
        return func
    return decorator


@register_scorer(QuestionType.MCQ)
def _score_mcq(question: McqQuestion, answer: Any) -> ScoreResult:
    if question.single:
        selected = next((a for a in question.answers if a.id == answer), None)
        score = 1 if selected is not None and selected.fraction > 0 else 0
        return ScoreResult(score=score, max_score=1)

    if isinstance(answer, str):
        selected_ids = {answer} if answer else set()
    elif isinstance(answer, Iterable):
        selected_ids = {item for item in answer if isinstance(item, str)}
    else:
        # None, numbers and booleans select nothing
        selected_ids = set()

    score = 0.0
    for option in question.answers:
        if option.id not in selected_ids:
            continue
        if option.fraction > 0:
            score += 1
        elif option.fraction == 0:
            score -= WRONG_SELECTION_PENALTY
    return ScoreResult(score=max(0.0, score), max_score=len(question.answers))


@register_scorer(QuestionType.TRUE_FALSE)
def _score_truefalse(question: TrueFalseQuestion, answer: Any) -> ScoreResult:
    correct = isinstance(answer, bool) and answer == question.correct_answer
    return ScoreResult(score=1 if correct else 0, max_score=1)


@register_scorer(QuestionType.SHORT_ANSWER)
def _score_shortanswer(question: ShortAnswerQuestion, answer: Any) -> ScoreResult:
    if not isinstance(answer, str):
        return ScoreResult(score=0, max_score=1)

    submitted = answer.strip()
    if not question.case_sensitive:
        submitted = submitted.lower()

    for accepted in question.answers:
        expected = accepted.text.strip()
        if not question.case_sensitive:
            expected = expected.lower()
        if expected == submitted:
            return ScoreResult(score=accepted.fraction / 100, max_score=1)
    return ScoreResult(score=0, max_score=1)


@register_scorer(QuestionType.MATCHING)
def _score_matching(question: MatchingQuestion, answer: Any) -> ScoreResult:
    if not question.subquestions or not isinstance(answer, Mapping):
        return ScoreResult(score=0, max_score=1)

    correct = sum(
        1 for pair in question.subquestions
        if answer.get(pair.id) == pair.answer_text
    )
    return ScoreResult(score=correct / len(question.subquestions), max_score=1)


def score_question(question: Question, answer: Any) -> ScoreResult:
    """Grade one submitted answer against a question."""
    scorer = SCORERS.get(getattr(question, "type", None))
    if scorer is None:
        raise UnsupportedQuestionTypeError(getattr(question, "type", type(question).__name__))
    return scorer(question, answer)


def score_attempt(questions: Iterable[Question], answers: Mapping[str, Any]) -> AttemptScore:
    """Sum the scores of an attempt; answers are keyed by question id."""
    total = 0.0
    maximum = 0.0
    for question in questions:
        result = score_question(question, answers.get(question.id))
        total += result.score
        maximum += result.max_score

    percentage = math.floor(total / maximum * 100 + 0.5) if maximum > 0 else 0
    return AttemptScore(score=total, max_score=maximum, percentage=percentage)
