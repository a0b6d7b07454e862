"""
Moodle XML export.

to_xml() renders a quiz as a Moodle question-bank document: a category
banner followed by one <question> block per question. Export only; the
XML is never read back into the model. validate_xml() performs a shape
check of a document (root, question types, names and texts), not a
semantic one.

Escaping is deliberately asymmetric: rich text (question text, feedback,
MCQ answer text, matching items) is wrapped in CDATA, while short plain
strings (title, tags, short-answer strings, matching answers) are
entity-escaped.
"""

from __future__ import annotations

import html
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

from ..errors import UnsupportedQuestionTypeError
from ..model.types import (
    MatchingQuestion,
    McqQuestion,
    Question,
    QuestionType,
    Quiz,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from ..model.utils import format_bool, format_number, strip_invalid_xml_chars

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

MOODLE_TYPES: dict[QuestionType, str] = {
    QuestionType.MCQ: "multichoice",
    QuestionType.TRUE_FALSE: "truefalse",
    QuestionType.SHORT_ANSWER: "shortanswer",
    QuestionType.MATCHING: "matching",
}

MATCHING_CORRECT_FEEDBACK = "Votre réponse est correcte."
MATCHING_PARTIAL_FEEDBACK = "Votre réponse est partiellement correcte."
MATCHING_INCORRECT_FEEDBACK = "Votre réponse est incorrecte."


@dataclass
class XmlValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


# =============================================================================
# Text helpers
# =============================================================================



def escape_text(text: str | None) -> str:
    """Entity-escape &, < and > (quotes are left alone)."""
    return html.escape(strip_invalid_xml_chars(text), quote=False)


def cdata(text: str | None) -> str:
    """Wrap text in CDATA, splitting any ']]>' so the section stays closed."""
    payload = strip_invalid_xml_chars(text).replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{payload}]]>"


def _comment_safe(text: str) -> str:
    # '--' is not allowed inside an XML comment
    return re.sub(r"-(?=-)", "- ", strip_invalid_xml_chars(text))


def _flag(value: bool) -> str:
    return "1" if value else "0"


def _feedback_block(tag: str, text: str | None, indent: str = "  ") -> str:
    """Optional <tag format="html"> block, empty string when there is no text."""
    if not text:
        return ""
    return (
        f'{indent}<{tag} format="html">\n'
        f"{indent}  <text>{cdata(text)}</text>\n"
        f"{indent}</{tag}>\n"
    )


def _answer_feedback(text: str | None) -> str:
    return _feedback_block("feedback", text, indent="    ")


def _tags_xml(tags: list[str]) -> str:
    return "".join(
        f"  <tag>\n    <text>{escape_text(tag)}</text>\n  </tag>\n"
        for tag in tags
    )


def _common_header(question: Question) -> str:
    return (
        f"<!-- question: {_comment_safe(question.id)}  -->\n"
        f'<question type="{MOODLE_TYPES[question.type]}">\n'
        f"  <name>\n"
        f"    <text>{escape_text(question.title)}</text>\n"
        f"  </name>\n"
        f'  <questiontext format="html">\n'
        f"    <text>{cdata(question.text)}</text>\n"
        f"  </questiontext>\n"
        f'  <generalfeedback format="html">\n'
        f"    <text>{cdata(question.general_feedback)}</text>\n"
        f"  </generalfeedback>\n"
        f"  <defaultgrade>{format_number(question.default_grade)}</defaultgrade>\n"
        f"  <penalty>{format_number(question.penalty / 100)}</penalty>\n"
        f"  <hidden>0</hidden>\n"
    )


def _common_footer(question: Question) -> str:
    return f"{_tags_xml(question.tags)}</question>"


# =============================================================================
# Per-type bodies
# =============================================================================

BodyWriter = Callable[[Question], str]

# Body writer registry - populated by @body_writer
BODY_WRITERS: dict[QuestionType, BodyWriter] = {}


def body_writer(question_type: QuestionType):
    """Decorator to register the type-specific XML of a question kind."""
    def decorator(func: BodyWriter) -> BodyWriter:
        BODY_WRITERS[question_type] = func
        return func
    return decorator


@body_writer(QuestionType.MCQ)
def _mcq_body(question: McqQuestion) -> str:
    parts = [
        f"  <single>{format_bool(question.single)}</single>\n",
        f"  <shuffleanswers>{_flag(question.shuffle_answers)}</shuffleanswers>\n",
        "  <answernumbering>abc</answernumbering>\n",
        "  <showstandardinstruction>0</showstandardinstruction>\n",
        _feedback_block("correctfeedback", question.correct_feedback),
        _feedback_block("partiallycorrectfeedback", question.partially_correct_feedback),
        _feedback_block("incorrectfeedback", question.incorrect_feedback),
    ]
    for answer in question.answers:
        parts.append(
            f'  <answer fraction="{format_number(answer.fraction)}" format="html">\n'
            f"    <text>{cdata(answer.text)}</text>\n"
            f"{_answer_feedback(answer.feedback)}"
            f"  </answer>\n"
        )
    return "".join(parts)


@body_writer(QuestionType.TRUE_FALSE)
def _truefalse_body(question: TrueFalseQuestion) -> str:
    true_fraction = "100" if question.correct_answer else "0"
    false_fraction = "0" if question.correct_answer else "100"
    return (
        f'  <answer fraction="{true_fraction}" format="moodle_auto_format">\n'
        f"    <text>true</text>\n"
        f"{_answer_feedback(question.true_feedback)}"
        f"  </answer>\n"
        f'  <answer fraction="{false_fraction}" format="moodle_auto_format">\n'
        f"    <text>false</text>\n"
        f"{_answer_feedback(question.false_feedback)}"
        f"  </answer>\n"
    )


@body_writer(QuestionType.SHORT_ANSWER)
def _shortanswer_body(question: ShortAnswerQuestion) -> str:
    parts = [f"  <usecase>{_flag(question.case_sensitive)}</usecase>\n"]
    for answer in question.answers:
        parts.append(
            f'  <answer fraction="{format_number(answer.fraction)}" format="moodle_auto_format">\n'
            f"    <text>{escape_text(answer.text)}</text>\n"
            f"{_answer_feedback(answer.feedback)}"
            f"  </answer>\n"
        )
    return "".join(parts)


@body_writer(QuestionType.MATCHING)
def _matching_body(question: MatchingQuestion) -> str:
    parts = [
        f"  <shuffleanswers>{_flag(question.shuffle_answers)}</shuffleanswers>\n",
        f'  <correctfeedback format="html">\n'
        f"    <text>{MATCHING_CORRECT_FEEDBACK}</text>\n"
        f"  </correctfeedback>\n",
        f'  <partiallycorrectfeedback format="html">\n'
        f"    <text>{MATCHING_PARTIAL_FEEDBACK}</text>\n"
        f"  </partiallycorrectfeedback>\n",
        f'  <incorrectfeedback format="html">\n'
        f"    <text>{MATCHING_INCORRECT_FEEDBACK}</text>\n"
        f"  </incorrectfeedback>\n",
    ]
    for pair in question.subquestions:
        parts.append(
            f'  <subquestion format="html">\n'
            f"    <text>{cdata(pair.text)}</text>\n"
            f"    <answer>\n"
            f"      <text>{escape_text(pair.answer_text)}</text>\n"
            f"    </answer>\n"
            f"  </subquestion>\n"
        )
    return "".join(parts)


# =============================================================================
# Export
# =============================================================================


def question_to_xml(question: Question) -> str:
    """Render a single <question> block (with its leading comment)."""
    writer = BODY_WRITERS.get(getattr(question, "type", None))
    if writer is None:
        raise UnsupportedQuestionTypeError(getattr(question, "type", type(question).__name__))
    return _common_header(question) + writer(question) + _common_footer(question)


def _category_banner(quiz: Quiz) -> str:
    return (
        "<!-- question: 0  -->\n"
        '<question type="category">\n'
        "<category>\n"
        f"<text>$course$/top/Default for {escape_text(quiz.name)}</text>\n"
        "</category>\n"
        "</question>"
    )


def to_xml(quiz: Quiz) -> str:
    """Render a quiz as a Moodle XML document."""
    blocks = []
    for question in quiz.questions:
        try:
            blocks.append(question_to_xml(question))
        except UnsupportedQuestionTypeError as e:
            logger.warning(f"Skipping question {getattr(question, 'id', '?')}: {e}")

    logger.info(f"Exported {len(blocks)} question(s) of quiz '{quiz.name}' to Moodle XML")
    body = "\n\n".join(blocks)
    return (
        f"{XML_DECLARATION}\n<quiz>\n{_category_banner(quiz)}\n\n"
        f"{body}\n\n</quiz>"
    )


def quiz_export_filename(quiz: Quiz, fmt: str) -> str:
    """Download filename for a quiz export ('xml' or 'csv')."""
    stem = re.sub(r"[^a-zA-Z0-9]", "_", quiz.name)
    if fmt == "xml":
        return f"{stem}_moodle.xml"
    if fmt == "csv":
        return f"{stem}_questions.csv"
    raise ValueError(f"Unknown export format: {fmt}")


# =============================================================================
# Shape validation
# =============================================================================


def _child_text(element: ET.Element, path: str) -> str:
    node = element.find(path)
    if node is None:
        return ""
    return "".join(node.itertext()).strip()


def validate_xml(xml_text: str) -> XmlValidationResult:
    """
    Check the shape of a Moodle XML document.

    Verifies the <quiz> root, at least one <question>, a type attribute on
    every question, and non-empty name and question text on every
    non-category question. Fraction sums and other semantic rules are not
    checked.
    """
    errors: list[str] = []

    try:
        root = ET.fromstring(xml_text.encode("utf-8") if isinstance(xml_text, str) else xml_text)
    except ET.ParseError as e:
        return XmlValidationResult(valid=False, errors=[f"XML parse error: {e}"])

    if root.tag != "quiz":
        errors.append('Missing root element "quiz"')

    questions = list(root.iter("question"))
    if not questions:
        errors.append("No question found")

    for index, question in enumerate(questions, start=1):
        question_type = question.get("type")
        if not question_type:
            errors.append(f'Question {index}: missing "type" attribute')
        if question_type == "category":
            continue
        if not _child_text(question, "name/text"):
            errors.append(f"Question {index}: missing name")
        if not _child_text(question, "questiontext/text"):
            errors.append(f"Question {index}: missing question text")

    return XmlValidationResult(valid=not errors, errors=errors)
