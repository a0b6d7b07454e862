"""
Setup script for quizbank-cli.

quizbank is a question-bank toolkit for quiz authors:

1. Authoring - Write questions in a spreadsheet and import them from CSV
2. Validation - Catch incomplete or inconsistent questions before export
3. Export - Produce Moodle XML (or CSV) ready for an LMS import

The 'quizbank' command is the entry point.
"""

from setuptools import find_packages, setup

setup(
    name="quizbank-cli",
    version="1.0.0",
    description="Quiz authoring toolkit: CSV import, validation and Moodle XML export",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="quizbank contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizbank=quizbank.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="quiz moodle csv xml education cli",
)
