"""Random selection helpers: bank sampling, per-session shuffle, access codes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import random
from typing import TypeVar
from uuid import uuid4

from exam_app.constants.exam_constants import ACCESS_CODE_LENGTH, MAX_ACCESS_CODE_ATTEMPTS
from exam_app.core.errors import QuestionBankError
from exam_app.core.models import Question

T = TypeVar("T")


def shuffled(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a new list holding ``items`` in random order. The input is untouched."""
    result = list(items)
    (rng or random.Random()).shuffle(result)
    return result


def sample_by_category(
    bank: Callable[[str], list[Question]],
    category_counts: dict[str, int],
    rng: random.Random | None = None,
) -> list[Question]:
    """Draw ``count`` distinct random questions for every requested category.

    ``bank`` returns all questions of a category. Categories are drawn in the
    order given and the picks are concatenated.
    """
    rng = rng or random.Random()
    selected: list[Question] = []
    for category, count in category_counts.items():
        if count < 0:
            raise QuestionBankError(f"Question count for category {category} must not be negative.")
        candidates = bank(category)
        if len(candidates) < count:
            raise QuestionBankError(f"Not enough questions in bank for category: {category}")
        selected.extend(rng.sample(candidates, count))
    return selected


def generate_access_code(is_taken: Callable[[str], bool]) -> str:
    """Generate an upper-case access code that ``is_taken`` reports as free."""
    for _ in range(MAX_ACCESS_CODE_ATTEMPTS):
        code = uuid4().hex[:ACCESS_CODE_LENGTH].upper()
        if not is_taken(code):
            return code
    raise RuntimeError("Unable to generate a unique access code.")
