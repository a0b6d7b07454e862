"""
Quiz persistence and editing.
"""

from .editor import QuizEditor
from .repository import (
    InMemoryQuizRepository,
    JsonFileQuizRepository,
    QuizRepository,
    StoreSettings,
    StoreStats,
)

__all__ = [
    "InMemoryQuizRepository",
    "JsonFileQuizRepository",
    "QuizEditor",
    "QuizRepository",
    "StoreSettings",
    "StoreStats",
]
