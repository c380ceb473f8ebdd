"""Utilities for loading a question bank from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    CATEGORY: Algebra
    DIFFICULTY: 2          (optional integer)
    Q: Question text. Additional lines until the next marker are treated as
       part of the question.
    A: First option text
    B: Second option text
    ...                    (at least two options, single-letter keys)
    CORRECT: B

Example:

    CATEGORY: Arithmetic
    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    CORRECT: B
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import string

from exam_app.constants.exam_constants import MIN_OPTIONS_PER_QUESTION
from exam_app.core.errors import QuestionBankError
from exam_app.core.models import Question, QuestionOption
from exam_app.core.services.exam_repository import ExamRepository

logger = logging.getLogger(__name__)

_OPTION_KEYS = string.ascii_uppercase


@dataclass(slots=True)
class BankEntry:
    """Parsed question waiting to be stored."""

    category: str
    content: str
    options: list[QuestionOption]
    correct_option_key: str
    difficulty: int | None = None


def load_bank_from_file(file_path: Path, repository: ExamRepository) -> list[Question]:
    """Parse ``file_path`` and add every question to ``repository``."""
    text = file_path.read_text(encoding="utf-8")
    entries = parse_bank_text(text)
    if not entries:
        raise QuestionBankError("Question bank file did not contain any questions.")
    with repository.transaction():
        stored = [
            repository.add_question(
                category=entry.category,
                content=entry.content,
                options=entry.options,
                correct_option_key=entry.correct_option_key,
                difficulty=entry.difficulty,
            )
            for entry in entries
        ]
    logger.info("Loaded %d questions from %s", len(stored), file_path)
    return stored


def parse_bank_text(text: str) -> list[BankEntry]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    return [_parse_block(block) for block in blocks if block]


def _parse_block(block: str) -> BankEntry:
    category: str | None = None
    difficulty: int | None = None
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_key: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        upper = line.upper()
        if upper.startswith("CATEGORY:"):
            category = line.split(":", 1)[1].strip()
            current_section = None
            continue

        if upper.startswith("DIFFICULTY:"):
            raw_value = line.split(":", 1)[1].strip()
            try:
                difficulty = int(raw_value)
            except ValueError as exc:
                raise QuestionBankError("DIFFICULTY must be an integer.") from exc
            current_section = None
            continue

        if upper.startswith("CORRECT:"):
            correct_key = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_KEYS and line[1] == ":":
            key = line[0].upper()
            if key in options:
                raise QuestionBankError(f"Option {key} is defined twice.")
            options[key] = line[2:].strip()
            current_section = key
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionBankError(f"Encountered text outside of a known section: '{line}'.")

    if not category:
        raise QuestionBankError("CATEGORY missing (CATEGORY: ...)")
    content = "\n".join(question_lines).strip()
    if not content:
        raise QuestionBankError("Question text missing (Q: ...)")
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise QuestionBankError(
            f"Each question must define at least {MIN_OPTIONS_PER_QUESTION} options."
        )
    if any(not text.strip() for text in options.values()):
        raise QuestionBankError("Option text cannot be empty.")
    if correct_key is None:
        raise QuestionBankError("CORRECT missing (CORRECT: <key>)")
    if correct_key not in options:
        raise QuestionBankError(f"CORRECT must name one of the options: {', '.join(options)}.")

    return BankEntry(
        category=category,
        content=content,
        options=[QuestionOption(key=key, text=text.strip()) for key, text in options.items()],
        correct_option_key=correct_key,
        difficulty=difficulty,
    )
