"""
Command-line interface for quizbank.
"""

from .main import app, main

__all__ = ["app", "main"]
