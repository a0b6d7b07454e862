"""
quizbank: build, validate, score and export LMS question banks.

Components:
- model: typed quiz/question representation and JSON persistence shape
- validation: structural and numeric rules per question type
- codecs: CSV round-trip and Moodle XML export
- scoring: per-question and per-attempt score evaluation
- store: quiz repository and the single-writer quiz editor
"""

__version__ = "1.0.0"
