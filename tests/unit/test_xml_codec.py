"""
Unit tests for Moodle XML export and shape validation.
"""

import xml.etree.ElementTree as ET

import pytest

from quizbank.codecs.xml_codec import (
    BODY_WRITERS,
    cdata,
    escape_text,
    question_to_xml,
    quiz_export_filename,
    to_xml,
    validate_xml,
)
from quizbank.errors import UnsupportedQuestionTypeError
from quizbank.model import Answer, QuestionType, create_quiz
from quizbank.validation import validate_question


def _parse(xml_text: str) -> ET.Element:
    return ET.fromstring(xml_text.encode("utf-8"))


def _questions(root: ET.Element) -> list[ET.Element]:
    return [q for q in root.iter("question") if q.get("type") != "category"]


class TestHelpers:
    """Test escaping helpers."""

    def test_escape_text_leaves_quotes(self):
        assert escape_text('a < b & "c"') == 'a &lt; b &amp; "c"'

    def test_cdata_splits_terminator(self):
        wrapped = cdata("x ]]> y")
        root = _parse(f"<t>{wrapped}</t>")
        assert root.text == "x ]]> y"

    def test_control_characters_are_dropped(self):
        assert escape_text("a\x01b") == "ab"


class TestExport:
    """Test to_xml."""

    def test_every_type_has_a_writer(self):
        assert set(BODY_WRITERS) == set(QuestionType)

    def test_document_is_well_formed(self, sample_quiz):
        xml_text = to_xml(sample_quiz)

        assert xml_text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = _parse(xml_text)
        assert root.tag == "quiz"
        assert [q.get("type") for q in root.iter("question")] == [
            "category", "multichoice", "truefalse", "shortanswer", "matching",
        ]

    def test_category_banner(self, sample_quiz):
        root = _parse(to_xml(sample_quiz))
        category = root.find("question")
        assert category.findtext("category/text") == "$course$/top/Default for Géographie"

    def test_question_comments(self, sample_quiz):
        xml_text = to_xml(sample_quiz)
        assert "<!-- question: 0  -->" in xml_text
        assert f"<!-- question: {sample_quiz.questions[0].id}  -->" in xml_text

    def test_common_fields(self, mcq_question):
        mcq_question.penalty = 10
        mcq_question.default_grade = 2
        element = _parse(question_to_xml(mcq_question).split("\n", 1)[1])

        assert element.findtext("name/text") == "Capitale de la France"
        assert element.findtext("questiontext/text") == "Quelle est la capitale de la France ?"
        assert element.find("questiontext").get("format") == "html"
        assert element.findtext("defaultgrade") == "2"
        assert element.findtext("penalty") == "0.1"
        assert element.findtext("hidden") == "0"
        assert [t.text for t in element.findall("tag/text")] == ["géographie"]

    def test_mcq_answers(self, mcq_question):
        mcq_question.correct_feedback = "Bien joué"
        element = _parse(question_to_xml(mcq_question).split("\n", 1)[1])

        assert element.findtext("single") == "true"
        assert element.findtext("shuffleanswers") == "0"
        assert element.findtext("answernumbering") == "abc"
        assert element.findtext("correctfeedback/text") == "Bien joué"
        assert element.find("incorrectfeedback") is None

        answers = element.findall("answer")
        assert [a.get("fraction") for a in answers] == ["100", "0", "0"]
        assert answers[0].findtext("text") == "Paris"
        assert answers[0].findtext("feedback/text") == "Correct !"
        assert answers[1].find("feedback") is None

    def test_mcq_multiple_fraction(self, mcq_question):
        mcq_question.single = False
        mcq_question.answers = [Answer(text="a", fraction=33.33), Answer(text="b", fraction=66.67)]
        element = _parse(question_to_xml(mcq_question).split("\n", 1)[1])

        assert element.findtext("single") == "false"
        assert [a.get("fraction") for a in element.findall("answer")] == ["33.33", "66.67"]

    def test_truefalse_false(self, truefalse_question):
        element = _parse(question_to_xml(truefalse_question).split("\n", 1)[1])
        answers = element.findall("answer")

        assert [(a.findtext("text"), a.get("fraction")) for a in answers] == [
            ("true", "0"),
            ("false", "100"),
        ]
        assert answers[0].get("format") == "moodle_auto_format"
        assert answers[1].findtext("feedback/text") == "Correct !"

    def test_shortanswer_is_entity_escaped(self, shortanswer_question):
        shortanswer_question.answers[0].text = "a<b"
        xml_text = question_to_xml(shortanswer_question)

        assert "<text>a&lt;b</text>" in xml_text
        element = _parse(xml_text.split("\n", 1)[1])
        assert element.findtext("usecase") == "0"
        assert element.find("answer").findtext("text") == "a<b"

    def test_matching(self, matching_question):
        element = _parse(question_to_xml(matching_question).split("\n", 1)[1])
        subquestions = element.findall("subquestion")

        assert len(subquestions) == 3
        assert subquestions[0].findtext("text") == "Paris"
        assert subquestions[0].findtext("answer/text") == "France"
        assert element.findtext("correctfeedback/text") == "Votre réponse est correcte."

    def test_markup_in_text_stays_well_formed(self, mcq_question):
        mcq_question.title = "Tom & Jerry <3"
        mcq_question.text = "<p>Texte <b>riche</b></p> ]]> fin"
        element = _parse(question_to_xml(mcq_question).split("\n", 1)[1])

        assert element.findtext("name/text") == "Tom & Jerry <3"
        assert element.findtext("questiontext/text") == "<p>Texte <b>riche</b></p> ]]> fin"

    def test_unsupported_question(self):
        with pytest.raises(UnsupportedQuestionTypeError):
            question_to_xml(object())

    def test_empty_quiz(self):
        root = _parse(to_xml(create_quiz("Vide")))
        assert _questions(root) == []


class TestExportFilename:
    """Test quiz_export_filename."""

    def test_xml(self):
        assert quiz_export_filename(create_quiz("Quiz n°1: Géo"), "xml") == "Quiz_n_1__G_o_moodle.xml"

    def test_csv(self):
        assert quiz_export_filename(create_quiz("Test"), "csv") == "Test_questions.csv"

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            quiz_export_filename(create_quiz("Test"), "pdf")


class TestValidateXml:
    """Test validate_xml."""

    def test_exported_document_is_valid(self, sample_quiz):
        result = validate_xml(to_xml(sample_quiz))
        assert result.valid is True
        assert result.errors == []

    def test_malformed(self):
        result = validate_xml("<quiz><question>")
        assert result.valid is False
        assert "parse error" in result.errors[0]

    def test_wrong_root(self):
        result = validate_xml('<bank><question type="truefalse"/></bank>')
        assert result.valid is False
        assert 'Missing root element "quiz"' in result.errors

    def test_no_question(self):
        result = validate_xml("<quiz></quiz>")
        assert result.errors == ["No question found"]

    def test_missing_type_name_and_text(self):
        result = validate_xml("<quiz><question></question></quiz>")
        assert result.errors == [
            'Question 1: missing "type" attribute',
            "Question 1: missing name",
            "Question 1: missing question text",
        ]

    @pytest.mark.parametrize("title", ["Titre\x07", "\ufffe Titre", "Ti\x0btre"])
    def test_questions_passing_validation_export_valid_xml(self, truefalse_question, title):
        """A question accepted by validate_question yields a valid document."""
        truefalse_question.title = title
        quiz = create_quiz("Contrôle")
        quiz.questions = [truefalse_question]

        assert validate_question(truefalse_question) == []
        result = validate_xml(to_xml(quiz))
        assert result.valid is True, result.errors

    def test_control_character_title_is_rejected_before_export(self, truefalse_question):
        truefalse_question.title = "\x07"
        assert [issue.field for issue in validate_question(truefalse_question)] == ["title"]

    def test_empty_quiz_export_has_only_the_banner(self):
        result = validate_xml(to_xml(create_quiz("Vide")))
        assert result.valid is True
