"""
Quiz repository: persistence of quizzes and the current-quiz pointer.

The repository is injected into its users (see QuizEditor); nothing in
quizbank holds a module-level store. Two implementations:

- InMemoryQuizRepository: process-local, used by tests and as the base class
- JsonFileQuizRepository: the whole store in one JSON file, rewritten after
  every write

Store layout (JSON):
    {"quizzes": [...], "currentQuiz": {...} | absent,
     "settings": {"language": "fr", "theme": "light", "autoSave": true}}
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol

from loguru import logger

from ..errors import QuizNotFoundError, StoreImportError, UnsupportedQuestionTypeError
from ..model.serialization import quiz_from_dict, quiz_to_dict
from ..model.types import Question, Quiz


@dataclass
class StoreSettings:
    """User preferences kept alongside the quizzes."""

    language: str = "fr"
    theme: str = "light"
    auto_save: bool = True

    def to_dict(self) -> dict:
        return {"language": self.language, "theme": self.theme, "autoSave": self.auto_save}

    @classmethod
    def from_dict(cls, data: dict | None) -> "StoreSettings":
        data = data or {}
        return cls(
            language=data.get("language", "fr"),
            theme=data.get("theme", "light"),
            auto_save=data.get("autoSave", True),
        )


@dataclass
class StoreStats:
    total_quizzes: int
    total_questions: int
    question_types: dict[str, int] = field(default_factory=dict)
    storage_size: int = 0  # bytes of the serialized store


class QuizRepository(Protocol):
    """Persistence seam used by the editor and the CLI."""

    def get_quizzes(self) -> list[Quiz]:
        ...

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        ...

    def save_quiz(self, quiz: Quiz) -> None:
        ...

    def delete_quiz(self, quiz_id: str) -> None:
        ...

    def get_current_quiz(self) -> Quiz | None:
        ...

    def set_current_quiz(self, quiz: Quiz | None) -> None:
        ...

    def save_question(self, quiz_id: str, question: Question) -> None:
        ...

    def delete_question(self, quiz_id: str, question_id: str) -> None:
        ...


class InMemoryQuizRepository:
    """Quiz store held in memory. Subclasses persist through _persist()."""

    def __init__(self):
        self._quizzes: list[Quiz] = []
        self._current: Quiz | None = None
        self._settings = StoreSettings()

    def _persist(self) -> None:
        """Write the store somewhere durable. No-op in memory."""
        pass

    # ========================================
    # Quizzes
    # ========================================

    def get_quizzes(self) -> list[Quiz]:
        return list(self._quizzes)

    def get_quiz(self, quiz_id: str) -> Quiz | None:
        return next((quiz for quiz in self._quizzes if quiz.id == quiz_id), None)

    def save_quiz(self, quiz: Quiz) -> None:
        """Insert or replace a quiz by id, stamping its modification time."""
        quiz.touch()
        for index, existing in enumerate(self._quizzes):
            if existing.id == quiz.id:
                self._quizzes[index] = quiz
                break
        else:
            self._quizzes.append(quiz)
        self._persist()

    def delete_quiz(self, quiz_id: str) -> None:
        """Remove a quiz; clears the current-quiz pointer when it matched."""
        self._quizzes = [quiz for quiz in self._quizzes if quiz.id != quiz_id]
        if self._current is not None and self._current.id == quiz_id:
            self._current = None
        self._persist()

    # ========================================
    # Current quiz
    # ========================================

    def get_current_quiz(self) -> Quiz | None:
        return self._current

    def set_current_quiz(self, quiz: Quiz | None) -> None:
        self._current = quiz
        self._persist()

    # ========================================
    # Questions
    # ========================================

    def save_question(self, quiz_id: str, question: Question) -> None:
        """Insert or replace a question of a stored quiz."""
        quiz = self.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)

        question.touch()
        for index, existing in enumerate(quiz.questions):
            if existing.id == question.id:
                quiz.questions[index] = question
                break
        else:
            quiz.questions.append(question)
        self.save_quiz(quiz)

    def delete_question(self, quiz_id: str, question_id: str) -> None:
        quiz = self.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)

        quiz.questions = [q for q in quiz.questions if q.id != question_id]
        self.save_quiz(quiz)

    # ========================================
    # Settings
    # ========================================

    def get_settings(self) -> StoreSettings:
        return self._settings

    def update_settings(self, **changes) -> StoreSettings:
        for key, value in changes.items():
            if not hasattr(self._settings, key):
                raise ValueError(f"Unknown store setting: {key}")
            setattr(self._settings, key, value)
        self._persist()
        return self._settings

    # ========================================
    # Backup / restore
    # ========================================

    def to_dict(self) -> dict:
        data = {
            "quizzes": [quiz_to_dict(quiz) for quiz in self._quizzes],
            "settings": self._settings.to_dict(),
        }
        if self._current is not None:
            data["currentQuiz"] = quiz_to_dict(self._current)
        return data

    def _load_dict(self, data: dict) -> None:
        """Replace the whole store from its JSON shape, re-hydrating dates."""
        quizzes = [quiz_from_dict(item) for item in data["quizzes"]]
        current = None
        if data.get("currentQuiz"):
            current = quiz_from_dict(data["currentQuiz"])
            # Share the stored instance so edits through either handle agree
            stored = next((q for q in quizzes if q.id == current.id), None)
            current = stored or current

        self._quizzes = quizzes
        self._current = current
        if data.get("settings") is not None:
            self._settings = StoreSettings.from_dict(data["settings"])

    def export_data(self) -> str:
        """Pretty-printed JSON backup of the whole store."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def import_data(self, json_data: str) -> None:
        """Replace the store with a JSON backup produced by export_data()."""
        try:
            data = json.loads(json_data)
            if not isinstance(data, dict) or not isinstance(data.get("quizzes"), list):
                raise StoreImportError("Invalid store format: 'quizzes' list is missing")
            self._load_dict(data)
        except StoreImportError:
            raise
        except (ValueError, KeyError, TypeError, AttributeError, UnsupportedQuestionTypeError) as e:
            logger.error(f"Store import failed: {e}")
            raise StoreImportError(f"Unable to import data: {e}") from e
        self._persist()

    def clear_all_data(self) -> None:
        self._quizzes = []
        self._current = None
        self._settings = StoreSettings()
        self._persist()

    def get_stats(self) -> StoreStats:
        question_types = Counter(
            question.type.value
            for quiz in self._quizzes
            for question in quiz.questions
        )
        return StoreStats(
            total_quizzes=len(self._quizzes),
            total_questions=sum(question_types.values()),
            question_types=dict(question_types),
            storage_size=len(json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")),
        )


class JsonFileQuizRepository(InMemoryQuizRepository):
    """
    Quiz store persisted to a single JSON file.

    An unreadable or corrupt file is logged and moved to a ``.bak`` file
    next to it before the store starts empty. Write failures, including a
    failed move, propagate to the caller.
    """

    def __init__(self, path: Path | str):
        super().__init__()
        self.path = Path(path).expanduser()
        self.backup_path: Path | None = None
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._load_dict(data)
            logger.debug(f"Loaded {len(self._quizzes)} quiz(zes) from {self.path}")
        except (OSError, ValueError, KeyError, TypeError, AttributeError, UnsupportedQuestionTypeError) as e:
            logger.error(f"Failed to load quiz store {self.path}: {e}")
            self._quizzes = []
            self._current = None
            self._set_aside()

    def _set_aside(self) -> None:
        """Move an unreadable store out of the way so the next save cannot overwrite it."""
        backup = self.path.with_name(f"{self.path.name}.bak")
        if backup.exists():
            backup = self.path.with_name(f"{self.path.name}.{datetime.now():%Y%m%d-%H%M%S-%f}.bak")
        self.path.replace(backup)
        self.backup_path = backup
        logger.warning(f"Unreadable quiz store moved to {backup}; starting with an empty store")

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Failed to save quiz store {self.path}: {e}")
            raise
