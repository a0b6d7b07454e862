"""
Validation rules for questions.

validate_question() is pure: it returns a list of issues and never raises
for a malformed question. Issues with severity ERROR block persistence,
export and CSV import of that question; WARNING issues are advisory.

Type-specific rules are registered per QuestionType with @register_rules.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .errors import UnsupportedQuestionTypeError
from .model.types import (
    MatchingQuestion,
    McqQuestion,
    Question,
    QuestionType,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from .model.utils import strip_invalid_xml_chars

MCQ_MIN_ANSWERS = 2
MCQ_MAX_ANSWERS = 10
SHORT_ANSWER_MIN_ANSWERS = 1
SHORT_ANSWER_MAX_ANSWERS = 5
MATCHING_MIN_PAIRS = 2
# float sums of fractions such as 33.33 + 33.33 + 33.34
FRACTION_TOLERANCE = 1e-9


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ValidationIssue:
    """A single problem found on a question."""
    field: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


RuleSet = Callable[[Question], list[ValidationIssue]]

# Rule registry - populated by @register_rules
RULES: dict[QuestionType, RuleSet] = {}


def register_rules(question_type: QuestionType):
    """Decorator to register the type-specific rules of a question kind."""
    def decorator(func: RuleSet) -> RuleSet:
        RULES[question_type] = func
        return func
    return decorator


def _error(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field, message, Severity.ERROR)


def _warning(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field, message, Severity.WARNING)


def _is_blank(value: str | None) -> bool:
    return not strip_invalid_xml_chars(value).strip()


def _fraction_out_of_range(fraction: float) -> bool:
    return fraction < 0 or fraction > 100


def validate_question(question: Question) -> list[ValidationIssue]:
    """Check base and type-specific invariants. Empty list means valid."""
    rules = RULES.get(getattr(question, "type", None))
    if rules is None:
        raise UnsupportedQuestionTypeError(getattr(question, "type", type(question).__name__))

    issues: list[ValidationIssue] = []

    if _is_blank(question.title):
        issues.append(_error("title", "Question title is required"))
    if _is_blank(question.text):
        issues.append(_error("text", "Question text is required"))
    if question.default_grade <= 0:
        issues.append(_error("defaultGrade", "Default grade must be greater than 0"))
    if question.penalty < 0 or question.penalty > 100:
        issues.append(_error("penalty", "Penalty must be between 0 and 100%"))

    issues.extend(rules(question))
    return issues


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.is_error for issue in issues)


def errors_only(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return [issue for issue in issues if issue.is_error]


def warnings_only(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    return [issue for issue in issues if not issue.is_error]


# =============================================================================
# Type-specific rules
# =============================================================================


def _validate_answer_list(answers, issues: list[ValidationIssue]) -> None:
    for index, answer in enumerate(answers):
        if _is_blank(answer.text):
            issues.append(_error(
                f"answers[{index}].text",
                f"Answer {index + 1} text is required",
            ))
        if _fraction_out_of_range(answer.fraction):
            issues.append(_error(
                f"answers[{index}].fraction",
                f"Answer {index + 1} fraction must be between 0 and 100%",
            ))


@register_rules(QuestionType.MCQ)
def _validate_mcq(question: McqQuestion) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    count = len(question.answers)

    if count < MCQ_MIN_ANSWERS:
        issues.append(_error(
            "answers",
            f"Multiple choice question must have at least {MCQ_MIN_ANSWERS} answers",
        ))
    if count > MCQ_MAX_ANSWERS:
        issues.append(_warning(
            "answers",
            f"Multiple choice question should not have more than {MCQ_MAX_ANSWERS} answers",
        ))

    total = sum(answer.fraction for answer in question.answers)
    if question.single and not math.isclose(total, 100, abs_tol=FRACTION_TOLERANCE):
        issues.append(_error(
            "answers",
            "For a single-answer question the fractions must add up to 100%",
        ))
    if not question.single and total > 100 + FRACTION_TOLERANCE:
        issues.append(_error(
            "answers",
            "For a multiple-answer question the fractions cannot exceed 100% in total",
        ))

    _validate_answer_list(question.answers, issues)
    return issues


@register_rules(QuestionType.TRUE_FALSE)
def _validate_truefalse(question: TrueFalseQuestion) -> list[ValidationIssue]:
    return []


@register_rules(QuestionType.SHORT_ANSWER)
def _validate_shortanswer(question: ShortAnswerQuestion) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    count = len(question.answers)

    if count < SHORT_ANSWER_MIN_ANSWERS:
        issues.append(_error(
            "answers",
            "Short answer question must have at least one accepted answer",
        ))
    if count > SHORT_ANSWER_MAX_ANSWERS:
        issues.append(_warning(
            "answers",
            f"Short answer question should not have more than {SHORT_ANSWER_MAX_ANSWERS} answers",
        ))

    _validate_answer_list(question.answers, issues)
    return issues


@register_rules(QuestionType.MATCHING)
def _validate_matching(question: MatchingQuestion) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if len(question.subquestions) < MATCHING_MIN_PAIRS:
        issues.append(_error(
            "subquestions",
            f"Matching question must have at least {MATCHING_MIN_PAIRS} pairs",
        ))

    for index, pair in enumerate(question.subquestions):
        if _is_blank(pair.text):
            issues.append(_error(
                f"subquestions[{index}].text",
                f"Item {index + 1} text is required",
            ))
        if _is_blank(pair.answer_text):
            issues.append(_error(
                f"subquestions[{index}].answerText",
                f"Item {index + 1} answer text is required",
            ))

    return issues
