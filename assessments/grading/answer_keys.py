"""
Answer keys: the correct answer of a question as a tagged variant.

A question stores its correct answer as loosely shaped JSON (or, for MCQ, as
flagged ``Option`` rows). ``build_answer_key`` turns that into exactly one of
``McqKey``, ``BooleanKey``, ``TextKey`` or ``KeywordKey`` so the evaluator can
branch on the key class instead of inspecting raw values.

``normalize_submission`` is the matching gate for learner input: it checks a
submitted value against the question type and returns its canonical form.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, FrozenSet, Optional, Tuple, Union

from assessments.exceptions import AnswerValidationError

logger = logging.getLogger(__name__)

MCQ = "mcq"
TRUE_FALSE = "true_false"
FILL_BLANK = "fill_blank"
SUBJECTIVE = "subjective"

QUESTION_TYPES = (MCQ, TRUE_FALSE, FILL_BLANK, SUBJECTIVE)


@dataclass(frozen=True)
class McqKey:
    option_ids: FrozenSet[str]


@dataclass(frozen=True)
class BooleanKey:
    # None when the stored key is unusable; such a question is never correct
    value: Optional[bool]


@dataclass(frozen=True)
class TextKey:
    accepted: Tuple[str, ...]


@dataclass(frozen=True)
class KeywordKey:
    keywords: Tuple[str, ...]


AnswerKey = Union[McqKey, BooleanKey, TextKey, KeywordKey]


@dataclass(frozen=True)
class GradableQuestion:
    """The slice of a catalog question the grading engine needs."""

    id: int
    key: AnswerKey
    points: Decimal
    negative_points: Decimal = Decimal("0")


def _as_list(raw):
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    return [raw]


def build_answer_key(question_type: str, raw: Any) -> AnswerKey:
    if question_type == MCQ:
        return McqKey(option_ids=frozenset(str(opt) for opt in _as_list(raw)))

    if question_type == TRUE_FALSE:
        if isinstance(raw, bool):
            return BooleanKey(value=raw)
        if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
            return BooleanKey(value=raw.strip().lower() == "true")
        logger.warning(f"Unusable true/false answer key {raw!r}; question can never be correct")
        return BooleanKey(value=None)

    if question_type == FILL_BLANK:
        return TextKey(accepted=tuple(str(value) for value in _as_list(raw)))

    if question_type == SUBJECTIVE:
        keywords = (str(value).strip() for value in _as_list(raw))
        return KeywordKey(keywords=tuple(word for word in keywords if word))

    raise ValueError(f"Unknown question type: {question_type!r}")


def _invalid(question_id, message):
    return AnswerValidationError({"answers": {str(question_id): [message]}})


def normalize_submission(question_type: str, value: Any, question_id=None):
    """
    Validate a submitted answer and return its canonical value.

    Returns ``None`` when the value clears the answer (``null``, an empty
    string or an empty selection). Raises ``AnswerValidationError`` when the
    shape does not fit the question type.

    Canonical forms: mcq -> frozenset of option ids, true_false -> bool,
    fill_blank / subjective -> str (unmodified; trimming happens at grading).
    """
    if value is None:
        return None

    if question_type == MCQ:
        items = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]
        option_ids = set()
        for item in items:
            # bool is an int subclass and never a valid option id
            if isinstance(item, bool) or not isinstance(item, (str, int)):
                raise _invalid(question_id, "Multiple choice answers must be an option id or a list of option ids.")
            option_ids.add(str(item))
        return frozenset(option_ids) or None

    if question_type == TRUE_FALSE:
        if not isinstance(value, bool):
            raise _invalid(question_id, "True/false answers must be a boolean.")
        return value

    if question_type in (FILL_BLANK, SUBJECTIVE):
        if not isinstance(value, str):
            raise _invalid(question_id, "Text answers must be a string.")
        return value if value.strip() else None

    raise ValueError(f"Unknown question type: {question_type!r}")


def to_json_value(value):
    """Canonical submission -> value stored in the attempt's answer JSON."""
    if isinstance(value, frozenset):
        return sorted(value)
    return value
