"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizbank.model import (  # noqa: E402
    Answer,
    MatchingPair,
    MatchingQuestion,
    McqQuestion,
    ShortAnswerQuestion,
    TrueFalseQuestion,
    create_quiz,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def mcq_question():
    """Provide a valid single-answer MCQ."""
    return McqQuestion(
        title="Capitale de la France",
        text="Quelle est la capitale de la France ?",
        tags=["géographie"],
        answers=[
            Answer(text="Paris", fraction=100, feedback="Correct !"),
            Answer(text="Lyon", fraction=0),
            Answer(text="Marseille", fraction=0),
        ],
    )


@pytest.fixture
def truefalse_question():
    """Provide a valid true/false question whose answer is False."""
    return TrueFalseQuestion(
        title="Population",
        text="La France compte plus de 70 millions d'habitants.",
        correct_answer=False,
        false_feedback="Correct !",
    )


@pytest.fixture
def shortanswer_question():
    """Provide a valid case-insensitive short-answer question."""
    return ShortAnswerQuestion(
        title="Chimie",
        text="Symbole chimique de l'eau ?",
        answers=[Answer(text="H2O", fraction=100), Answer(text="HHO", fraction=50)],
    )


@pytest.fixture
def matching_question():
    """Provide a valid matching question with three pairs."""
    return MatchingQuestion(
        title="Capitales",
        text="Associez chaque ville à son pays.",
        subquestions=[
            MatchingPair(text="Paris", answer_text="France"),
            MatchingPair(text="Londres", answer_text="Angleterre"),
            MatchingPair(text="Rome", answer_text="Italie"),
        ],
    )


@pytest.fixture
def sample_quiz(mcq_question, truefalse_question, shortanswer_question, matching_question):
    """Provide a quiz holding one question of every kind."""
    quiz = create_quiz("Géographie", description="Quiz de test")
    quiz.questions = [mcq_question, truefalse_question, shortanswer_question, matching_question]
    return quiz
