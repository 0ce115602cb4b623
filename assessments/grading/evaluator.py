"""
Answer evaluator: decides whether a single submitted answer is correct.

Inputs are an answer key (see ``answer_keys``) and a submission already
normalized by ``normalize_submission``. Unanswered questions are never passed
in here.
"""

from .answer_keys import BooleanKey, KeywordKey, McqKey, TextKey


def _fold(text):
    return text.strip().casefold()


def _mcq_correct(key, submitted):
    return frozenset(submitted) == key.option_ids


def _boolean_correct(key, submitted):
    return key.value is not None and submitted is key.value


def _text_correct(key, submitted):
    answer = _fold(submitted)
    return any(_fold(accepted) == answer for accepted in key.accepted)


def _keyword_correct(key, submitted):
    text = submitted.casefold()
    return any(keyword.casefold() in text for keyword in key.keywords)


_RULES = {
    McqKey: _mcq_correct,
    BooleanKey: _boolean_correct,
    TextKey: _text_correct,
    KeywordKey: _keyword_correct,
}


def is_correct(key, submitted) -> bool:
    try:
        rule = _RULES[type(key)]
    except KeyError:
        raise TypeError(f"No evaluation rule for {type(key).__name__}") from None
    return rule(key, submitted)
