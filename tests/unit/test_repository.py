"""
Unit tests for the quiz repositories.

Tests the in-memory store and the JSON file store built on it.
"""

import json
from datetime import datetime

import pytest

from quizbank.errors import QuizNotFoundError, StoreImportError
from quizbank.model import TrueFalseQuestion, create_quiz
from quizbank.model.serialization import quiz_to_dict
from quizbank.store import InMemoryQuizRepository, JsonFileQuizRepository, StoreSettings


@pytest.fixture
def repository():
    return InMemoryQuizRepository()


class TestQuizzes:
    """Test quiz CRUD."""

    def test_save_and_get(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)

        assert repository.get_quiz(sample_quiz.id) is sample_quiz
        assert repository.get_quizzes() == [sample_quiz]

    def test_save_stamps_modified(self, repository, sample_quiz):
        sample_quiz.modified = datetime(2020, 1, 1)
        repository.save_quiz(sample_quiz)
        assert sample_quiz.modified > datetime(2020, 1, 1)

    def test_save_replaces_by_id(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        renamed = create_quiz("Renommé")
        renamed.id = sample_quiz.id
        repository.save_quiz(renamed)

        assert len(repository.get_quizzes()) == 1
        assert repository.get_quiz(sample_quiz.id).name == "Renommé"

    def test_get_missing(self, repository):
        assert repository.get_quiz("nope") is None

    def test_delete_clears_current(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        repository.set_current_quiz(sample_quiz)
        repository.delete_quiz(sample_quiz.id)

        assert repository.get_quizzes() == []
        assert repository.get_current_quiz() is None

    def test_delete_other_keeps_current(self, repository, sample_quiz):
        other = create_quiz("Autre")
        repository.save_quiz(sample_quiz)
        repository.save_quiz(other)
        repository.set_current_quiz(sample_quiz)
        repository.delete_quiz(other.id)

        assert repository.get_current_quiz() is sample_quiz


class TestQuestions:
    """Test question persistence inside a quiz."""

    def test_save_question_appends_and_replaces(self, repository, sample_quiz, truefalse_question):
        quiz = create_quiz("Vide")
        repository.save_quiz(quiz)

        repository.save_question(quiz.id, truefalse_question)
        truefalse_question.title = "Modifié"
        repository.save_question(quiz.id, truefalse_question)

        assert [q.title for q in repository.get_quiz(quiz.id).questions] == ["Modifié"]

    def test_delete_question(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        first = sample_quiz.questions[0]
        repository.delete_question(sample_quiz.id, first.id)

        assert repository.get_quiz(sample_quiz.id).find_question(first.id) is None
        assert len(repository.get_quiz(sample_quiz.id).questions) == 3

    def test_unknown_quiz(self, repository, truefalse_question):
        with pytest.raises(QuizNotFoundError):
            repository.save_question("nope", truefalse_question)
        with pytest.raises(QuizNotFoundError):
            repository.delete_question("nope", truefalse_question.id)


class TestSettingsAndStats:
    """Test store preferences and statistics."""

    def test_default_settings(self, repository):
        assert repository.get_settings() == StoreSettings(language="fr", theme="light", auto_save=True)

    def test_update_settings(self, repository):
        repository.update_settings(theme="dark")
        assert repository.get_settings().theme == "dark"

    def test_update_unknown_setting(self, repository):
        with pytest.raises(ValueError):
            repository.update_settings(colour="red")

    def test_stats(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        repository.save_quiz(create_quiz("Vide"))
        stats = repository.get_stats()

        assert stats.total_quizzes == 2
        assert stats.total_questions == 4
        assert stats.question_types == {"mcq": 1, "truefalse": 1, "shortanswer": 1, "matching": 1}
        assert stats.storage_size > 0


class TestBackup:
    """Test export_data / import_data / clear_all_data."""

    def test_export_then_import(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        repository.set_current_quiz(sample_quiz)
        repository.update_settings(language="en")
        backup = repository.export_data()

        restored = InMemoryQuizRepository()
        restored.import_data(backup)

        assert restored.get_quizzes() == [sample_quiz]
        assert restored.get_current_quiz() is restored.get_quizzes()[0]
        assert restored.get_settings().language == "en"
        assert isinstance(restored.get_quizzes()[0].created, datetime)

    def test_import_keeps_settings_when_absent(self, repository):
        repository.update_settings(theme="dark")
        repository.import_data(json.dumps({"quizzes": []}))
        assert repository.get_settings().theme == "dark"

    @pytest.mark.parametrize(
        "payload",
        ["not json", "[]", json.dumps({"quizzes": "x"}), json.dumps({"quizzes": [{"questions": [{"type": "essay"}]}]})],
    )
    def test_import_rejects_malformed(self, repository, payload):
        with pytest.raises(StoreImportError):
            repository.import_data(payload)

    def test_clear_all_data(self, repository, sample_quiz):
        repository.save_quiz(sample_quiz)
        repository.set_current_quiz(sample_quiz)
        repository.clear_all_data()

        assert repository.get_quizzes() == []
        assert repository.get_current_quiz() is None


class TestJsonFileRepository:
    """Test the JSON file store."""

    def test_persists_across_instances(self, tmp_path, sample_quiz):
        path = tmp_path / "store" / "quizzes.json"
        JsonFileQuizRepository(path).save_quiz(sample_quiz)

        reloaded = JsonFileQuizRepository(path)
        assert reloaded.get_quizzes() == [sample_quiz]

    def test_file_is_camel_case_json(self, tmp_path, sample_quiz):
        path = tmp_path / "store.json"
        JsonFileQuizRepository(path).save_quiz(sample_quiz)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["quizzes"][0]["questions"][0]["defaultGrade"] == 1
        assert data["settings"]["autoSave"] is True

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        repository = JsonFileQuizRepository(path)
        assert repository.get_quizzes() == []
        assert repository.backup_path == tmp_path / "store.json.bak"
        assert repository.backup_path.read_text(encoding="utf-8") == "{not json"

    def test_unreadable_store_survives_the_next_save(self, tmp_path, sample_quiz):
        """A store with an unknown question type is set aside, not overwritten."""
        path = tmp_path / "store.json"
        data = {"quizzes": [quiz_to_dict(sample_quiz)]}
        data["quizzes"][0]["questions"].append({"id": "n1", "type": "numerical", "title": "t"})
        original = json.dumps(data)
        path.write_text(original, encoding="utf-8")

        repository = JsonFileQuizRepository(path)
        repository.save_quiz(create_quiz("new"))

        assert repository.backup_path.read_text(encoding="utf-8") == original
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [quiz["name"] for quiz in saved["quizzes"]] == ["new"]

    def test_existing_backup_is_not_replaced(self, tmp_path):
        path = tmp_path / "store.json"
        earlier = tmp_path / "store.json.bak"
        earlier.write_text("earlier", encoding="utf-8")
        path.write_text("[]", encoding="utf-8")

        repository = JsonFileQuizRepository(path)

        assert earlier.read_text(encoding="utf-8") == "earlier"
        assert repository.backup_path != earlier
        assert repository.backup_path.read_text(encoding="utf-8") == "[]"
        assert repository.backup_path.name.endswith(".bak")

    def test_readable_store_has_no_backup(self, tmp_path, sample_quiz):
        path = tmp_path / "store.json"
        JsonFileQuizRepository(path).save_quiz(sample_quiz)

        repository = JsonFileQuizRepository(path)
        assert repository.backup_path is None
        assert list(tmp_path.iterdir()) == [path]

    def test_missing_file_starts_empty(self, tmp_path):
        repository = JsonFileQuizRepository(tmp_path / "absent.json")
        assert repository.get_quizzes() == []
        assert not (tmp_path / "absent.json").exists()

    def test_current_quiz_is_restored(self, tmp_path):
        path = tmp_path / "store.json"
        repository = JsonFileQuizRepository(path)
        quiz = create_quiz("Courant")
        quiz.questions.append(TrueFalseQuestion(title="t", text="q"))
        repository.save_quiz(quiz)
        repository.set_current_quiz(quiz)

        current = JsonFileQuizRepository(path).get_current_quiz()
        assert current.id == quiz.id
        assert current.questions[0].title == "t"
