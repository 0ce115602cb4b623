from .answer_keys import (
    BooleanKey,
    GradableQuestion,
    KeywordKey,
    McqKey,
    TextKey,
    build_answer_key,
    normalize_submission,
)
from .aggregator import ScoreSheet, aggregate, evaluate_answers, grade
from .evaluator import is_correct
