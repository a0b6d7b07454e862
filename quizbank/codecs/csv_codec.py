"""
CSV interchange format for questions.

One row per question with a fixed column set (French headers, as used by
the authoring template):

    Type, Titre, Question, Note, Pénalité, Feedback général, Tags,
    Réponse i, Fraction i, Feedback i   (i = 1..5),
    Options spéciales

Type-specific data is folded into the answer slots and into the
"Options spéciales" mini-language (``key=value;key=value``). Matching pairs
are written as ``left:right`` inside a single answer cell.

The format is lossy: only the first 5 answers/pairs fit, MCQ overall
feedbacks are not carried, and ids/dates are regenerated on import.
"""

from __future__ import annotations

import csv
import io
import math
import re
from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

from ..errors import QuizbankError, UnsupportedQuestionTypeError
from ..model.types import (
    Answer,
    MatchingPair,
    MatchingQuestion,
    McqQuestion,
    Question,
    QuestionType,
    Quiz,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from ..model.utils import format_bool, format_number
from ..validation import Severity, ValidationIssue, validate_question

CSV_ANSWER_SLOTS = 5

COL_TYPE = "Type"
COL_TITLE = "Titre"
COL_TEXT = "Question"
COL_GRADE = "Note"
COL_PENALTY = "Pénalité"
COL_GENERAL_FEEDBACK = "Feedback général"
COL_TAGS = "Tags"
COL_OPTIONS = "Options spéciales"


def answer_col(slot: int) -> str:
    return f"Réponse {slot}"


def fraction_col(slot: int) -> str:
    return f"Fraction {slot}"


def feedback_col(slot: int) -> str:
    return f"Feedback {slot}"


CSV_HEADERS: list[str] = [
    COL_TYPE,
    COL_TITLE,
    COL_TEXT,
    COL_GRADE,
    COL_PENALTY,
    COL_GENERAL_FEEDBACK,
    COL_TAGS,
    *[
        col
        for slot in range(1, CSV_ANSWER_SLOTS + 1)
        for col in (answer_col(slot), fraction_col(slot), feedback_col(slot))
    ],
    COL_OPTIONS,
]

TRUE_LABEL = "Vrai"
FALSE_LABEL = "Faux"

# Leading numeric prefix, the way a lenient spreadsheet reads "12 pts"
_NUMBER_PREFIX = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


class CsvRowError(QuizbankError):
    """A data row that cannot be turned into a question."""
    pass


@dataclass
class ImportResult:
    """Outcome of a CSV import."""

    success: bool = False
    questions: list[Question] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def partial_success(self) -> bool:
        """Some rows were imported while others were rejected."""
        return bool(self.questions) and bool(self.errors)


@dataclass
class CsvTemplate:
    """Reference material for authors preparing a CSV file."""

    headers: list[str]
    sample_data: list[dict[str, str]]
    instructions: str


# =============================================================================
# Export
# =============================================================================

RowWriter = Callable[[Question, dict[str, str]], None]

# Row writer registry - populated by @row_writer
ROW_WRITERS: dict[QuestionType, RowWriter] = {}


def row_writer(question_type: QuestionType):
    """Decorator to register the export of a question kind's specific fields."""
    def decorator(func: RowWriter) -> RowWriter:
        ROW_WRITERS[question_type] = func
        return func
    return decorator


def _fill_answer_slots(question: Question, answers: list[Answer], row: dict[str, str]) -> None:
    if len(answers) > CSV_ANSWER_SLOTS:
        logger.warning(
            f"Question {question.id}: {len(answers)} answers, only the first "
            f"{CSV_ANSWER_SLOTS} are exported to CSV"
        )
    for slot, answer in enumerate(answers[:CSV_ANSWER_SLOTS], start=1):
        row[answer_col(slot)] = answer.text
        row[fraction_col(slot)] = format_number(answer.fraction)
        row[feedback_col(slot)] = answer.feedback or ""


@row_writer(QuestionType.MCQ)
def _write_mcq(question: McqQuestion, row: dict[str, str]) -> None:
    _fill_answer_slots(question, question.answers, row)
    row[COL_OPTIONS] = (
        f"single={format_bool(question.single)};"
        f"shuffle={format_bool(question.shuffle_answers)}"
    )


@row_writer(QuestionType.TRUE_FALSE)
def _write_truefalse(question: TrueFalseQuestion, row: dict[str, str]) -> None:
    row[answer_col(1)] = TRUE_LABEL
    row[fraction_col(1)] = "100" if question.correct_answer else "0"
    row[feedback_col(1)] = question.true_feedback or ""
    row[answer_col(2)] = FALSE_LABEL
    row[fraction_col(2)] = "0" if question.correct_answer else "100"
    row[feedback_col(2)] = question.false_feedback or ""


@row_writer(QuestionType.SHORT_ANSWER)
def _write_shortanswer(question: ShortAnswerQuestion, row: dict[str, str]) -> None:
    _fill_answer_slots(question, question.answers, row)
    row[COL_OPTIONS] = f"caseSensitive={format_bool(question.case_sensitive)}"


@row_writer(QuestionType.MATCHING)
def _write_matching(question: MatchingQuestion, row: dict[str, str]) -> None:
    pairs = question.subquestions
    if len(pairs) > CSV_ANSWER_SLOTS:
        logger.warning(
            f"Question {question.id}: {len(pairs)} pairs, only the first "
            f"{CSV_ANSWER_SLOTS} are exported to CSV"
        )
    for slot, pair in enumerate(pairs[:CSV_ANSWER_SLOTS], start=1):
        row[answer_col(slot)] = f"{pair.text}:{pair.answer_text}"
        row[fraction_col(slot)] = "100"
        row[feedback_col(slot)] = ""
    row[COL_OPTIONS] = f"shuffle={format_bool(question.shuffle_answers)}"


def question_to_row(question: Question) -> dict[str, str]:
    """Flatten one question into a CSV row keyed by header."""
    writer = ROW_WRITERS.get(getattr(question, "type", None))
    if writer is None:
        raise UnsupportedQuestionTypeError(getattr(question, "type", type(question).__name__))

    row = dict.fromkeys(CSV_HEADERS, "")
    row.update({
        COL_TYPE: question.type.value,
        COL_TITLE: question.title,
        COL_TEXT: question.text,
        COL_GRADE: format_number(question.default_grade),
        COL_PENALTY: format_number(question.penalty),
        COL_GENERAL_FEEDBACK: question.general_feedback or "",
        COL_TAGS: ",".join(question.tags),
    })
    writer(question, row)
    return row


def to_csv(questions: list[Question]) -> str:
    """Export questions as CSV text with the full header row."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_HEADERS, lineterminator="\r\n")
    writer.writeheader()

    exported = 0
    for question in questions:
        try:
            row = question_to_row(question)
        except UnsupportedQuestionTypeError as e:
            logger.warning(f"Skipping question {getattr(question, 'id', '?')}: {e}")
            continue
        writer.writerow(row)
        exported += 1

    logger.info(f"Exported {exported} question(s) to CSV")
    return output.getvalue()


def quiz_to_csv(quiz: Quiz) -> str:
    """Export every question of a quiz as CSV text."""
    return to_csv(quiz.questions)


# =============================================================================
# Import
# =============================================================================


def _parse_number(value: str | None, default: float) -> float:
    """Lenient number parsing; blank, unparseable and zero fall back to default."""
    match = _NUMBER_PREFIX.match(value or "")
    if not match:
        return default
    number = float(match.group(1))
    if number == 0 or math.isnan(number):
        return default
    return int(number) if number.is_integer() else number


def _parse_options(options: str | None) -> dict[str, str]:
    """Parse ``key=value;key=value``; tokens without both sides are ignored."""
    parsed: dict[str, str] = {}
    for token in (options or "").split(";"):
        key, _, value = token.partition("=")
        key, value = key.strip(), value.strip()
        if key and value:
            parsed[key] = value.lower()
    return parsed


def _parse_tags(tags: str | None) -> list[str]:
    return [tag.strip() for tag in (tags or "").split(",") if tag.strip()]


def _cell(row: dict[str, str], column: str) -> str:
    return (row.get(column) or "").strip()


def _parse_answers(row: dict[str, str]) -> list[Answer]:
    answers = []
    for slot in range(1, CSV_ANSWER_SLOTS + 1):
        text = _cell(row, answer_col(slot))
        if not text:
            continue
        answers.append(Answer(
            text=text,
            fraction=_parse_number(row.get(fraction_col(slot)), 0),
            feedback=_cell(row, feedback_col(slot)),
        ))
    return answers


def _parse_pairs(row: dict[str, str]) -> list[MatchingPair]:
    pairs = []
    for slot in range(1, CSV_ANSWER_SLOTS + 1):
        cell = _cell(row, answer_col(slot))
        if not cell:
            continue
        left, separator, right = cell.partition(":")
        if not separator:
            logger.debug(f"Dropping matching cell without ':' separator: {cell!r}")
            continue
        pairs.append(MatchingPair(text=left.strip(), answer_text=right.strip()))
    return pairs


def row_to_question(row: dict[str, str]) -> Question:
    """Build a question with fresh ids from a CSV row keyed by header."""
    raw_type = _cell(row, COL_TYPE).lower()
    if not raw_type:
        raise CsvRowError("Question type is missing")
    try:
        question_type = QuestionType(raw_type)
    except ValueError:
        raise UnsupportedQuestionTypeError(raw_type) from None

    base = {
        "title": _cell(row, COL_TITLE),
        "text": _cell(row, COL_TEXT),
        "default_grade": _parse_number(row.get(COL_GRADE), 1),
        "penalty": _parse_number(row.get(COL_PENALTY), 0),
        "general_feedback": _cell(row, COL_GENERAL_FEEDBACK),
        "tags": _parse_tags(row.get(COL_TAGS)),
    }
    options = _parse_options(row.get(COL_OPTIONS))

    if question_type is QuestionType.MCQ:
        return McqQuestion(
            **base,
            single=options.get("single", "true") != "false",
            shuffle_answers=options.get("shuffle", "false") == "true",
            answers=_parse_answers(row),
        )
    if question_type is QuestionType.TRUE_FALSE:
        return TrueFalseQuestion(
            **base,
            correct_answer=_parse_number(row.get(fraction_col(1)), 0) > 0,
            true_feedback=_cell(row, feedback_col(1)),
            false_feedback=_cell(row, feedback_col(2)),
        )
    if question_type is QuestionType.SHORT_ANSWER:
        return ShortAnswerQuestion(
            **base,
            case_sensitive=options.get("caseSensitive", "false") == "true",
            answers=_parse_answers(row),
        )
    return MatchingQuestion(
        **base,
        shuffle_answers=options.get("shuffle", "false") == "true",
        subquestions=_parse_pairs(row),
    )


def _read_rows(text: str) -> tuple[list[str] | None, list[list[str]]]:
    """Split CSV text into (header, data rows), skipping fully empty lines."""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""), strict=True)
    headers: list[str] | None = None
    rows: list[list[str]] = []
    for cells in reader:
        if not any(cell.strip() for cell in cells):
            continue
        if headers is None:
            headers = [cell.strip() for cell in cells]
        else:
            rows.append(cells)
    return headers, rows


def _cells_to_row(headers: list[str], cells: list[str]) -> dict[str, str]:
    if len(cells) > len(headers):
        raise CsvRowError(
            f"Too many fields: expected {len(headers)}, found {len(cells)}"
        )
    padded = cells + [""] * (len(headers) - len(cells))
    return dict(zip(headers, padded))


def _tag_issue(row_number: int, issue: ValidationIssue) -> ValidationIssue:
    return ValidationIssue(f"Row {row_number}, {issue.field}", issue.message, issue.severity)


def from_csv(text: str) -> ImportResult:
    """
    Import questions from CSV text.

    Rows are processed independently: a bad row is reported in ``errors``
    (tagged with its row number, header being row 1) and skipped.
    ``success`` is True only when no row produced an error.
    """
    result = ImportResult()

    try:
        headers, rows = _read_rows(text)
    except csv.Error as e:
        logger.warning(f"CSV parse failure: {e}")
        result.errors.append(ValidationIssue("csv", f"CSV parse error: {e}"))
        return result

    if headers is None:
        result.errors.append(ValidationIssue("csv", "CSV file is empty"))
        return result

    for index, cells in enumerate(rows):
        row_number = index + 2

        try:
            question = row_to_question(_cells_to_row(headers, cells))
        except (CsvRowError, UnsupportedQuestionTypeError) as e:
            logger.warning(f"CSV row {row_number} rejected: {e}")
            result.errors.append(ValidationIssue(f"Row {row_number}", str(e)))
            continue

        issues = validate_question(question)
        for issue in issues:
            tagged = _tag_issue(row_number, issue)
            if issue.severity is Severity.ERROR:
                result.errors.append(tagged)
            else:
                result.warnings.append(tagged)

        if any(issue.is_error for issue in issues):
            logger.warning(f"CSV row {row_number} rejected by validation")
            continue
        result.questions.append(question)

    result.success = not result.errors
    logger.info(
        f"CSV import: {len(result.questions)} question(s), "
        f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
    )
    return result


# =============================================================================
# Template
# =============================================================================

_SAMPLE_ROWS: list[dict[str, str]] = [
    {
        COL_TYPE: "mcq",
        COL_TITLE: "Capitale de la France",
        COL_TEXT: "Quelle est la capitale de la France ?",
        COL_GRADE: "1",
        COL_PENALTY: "0",
        COL_GENERAL_FEEDBACK: "Paris est la capitale et la plus grande ville de France.",
        COL_TAGS: "géographie,france",
        answer_col(1): "Paris",
        fraction_col(1): "100",
        feedback_col(1): "Correct !",
        answer_col(2): "Lyon",
        fraction_col(2): "0",
        feedback_col(2): "Non, Lyon est la troisième ville de France.",
        answer_col(3): "Marseille",
        fraction_col(3): "0",
        feedback_col(3): "Non, Marseille est la deuxième ville de France.",
        answer_col(4): "Toulouse",
        fraction_col(4): "0",
        feedback_col(4): "Non, Toulouse est la quatrième ville de France.",
        COL_OPTIONS: "single=true;shuffle=false",
    },
    {
        COL_TYPE: "truefalse",
        COL_TITLE: "Population française",
        COL_TEXT: "La France compte plus de 70 millions d'habitants.",
        COL_GRADE: "1",
        COL_PENALTY: "0",
        COL_GENERAL_FEEDBACK: "La France compte environ 67 millions d'habitants.",
        COL_TAGS: "géographie,démographie",
        answer_col(1): TRUE_LABEL,
        fraction_col(1): "0",
        feedback_col(1): "Faux, la France compte environ 67 millions d'habitants.",
        answer_col(2): FALSE_LABEL,
        fraction_col(2): "100",
        feedback_col(2): "Correct !",
    },
]

_INSTRUCTIONS = f"""
CSV import instructions

1. SUPPORTED QUESTION TYPES ("{COL_TYPE}" column):
   - mcq         : multiple choice
   - truefalse   : true/false
   - shortanswer : short answer
   - matching    : matching pairs

2. REQUIRED COLUMNS:
   - {COL_TYPE}     : question type (see above)
   - {COL_TITLE}    : question title
   - {COL_TEXT} : question text
   - {COL_GRADE}     : default grade (positive number)

3. OPTIONAL COLUMNS:
   - {COL_PENALTY}         : penalty per extra attempt, in percent (0-100)
   - {COL_GENERAL_FEEDBACK} : feedback shown after answering
   - {COL_TAGS}             : comma-separated tags
   - Réponse 1-{CSV_ANSWER_SLOTS}       : answer texts
   - Fraction 1-{CSV_ANSWER_SLOTS}      : answer grades in percent (0-100)
   - Feedback 1-{CSV_ANSWER_SLOTS}      : per-answer feedback
   - {COL_OPTIONS} : type-specific options

4. {COL_OPTIONS.upper()} (separated by semicolons):
   - mcq         : single=true/false;shuffle=true/false
   - shortanswer : caseSensitive=true/false
   - matching    : shuffle=true/false

5. RULES:
   - UTF-8 encoding is required
   - Quote any text containing commas or line breaks
   - Matching pairs are written "Item:Answer" in the answer columns
   - Single-answer mcq fractions must add up to 100
   - Only the first {CSV_ANSWER_SLOTS} answers of a question fit in a row

6. MATCHING EXAMPLE:
   {COL_TYPE}: matching
   Réponse 1: "Paris:France"
   Réponse 2: "Londres:Angleterre"
   Réponse 3: "Rome:Italie"
"""


def csv_template() -> CsvTemplate:
    """Headers, two sample rows (mcq and truefalse) and authoring instructions."""
    sample_data = []
    for sample in _SAMPLE_ROWS:
        row = dict.fromkeys(CSV_HEADERS, "")
        row.update(sample)
        sample_data.append(row)
    return CsvTemplate(
        headers=list(CSV_HEADERS),
        sample_data=sample_data,
        instructions=_INSTRUCTIONS,
    )


def template_to_csv(template: CsvTemplate) -> str:
    """Render a template's headers and sample rows as CSV text."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=template.headers, lineterminator="\r\n")
    writer.writeheader()
    writer.writerows(template.sample_data)
    return output.getvalue()
