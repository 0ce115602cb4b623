"""
Score aggregation for a finished attempt.

``evaluate_answers`` classifies every question of the exam (answered or not,
correct or not, signed point contribution) and ``aggregate`` folds those
outcomes into the totals stored on the attempt:

* ``total_points``   sum of every question's points (the denominator)
* ``correct_points`` points earned by correct answers
* ``negative_points`` penalties for answered, incorrect questions
* ``final_points``   ``correct_points - negative_points``, may be negative
* ``score``          ``final / total * 100`` rounded half away from zero,
                     ``0`` when the exam is worth no points

Unanswered questions contribute nothing, penalty included.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from .evaluator import is_correct

ZERO = Decimal("0")


@dataclass(frozen=True)
class QuestionOutcome:
    question_id: int
    answered: bool
    correct: bool
    points: Decimal
    possible_points: Decimal

    def as_result(self):
        return {
            "correct": self.correct,
            "answered": self.answered,
            "points": json_number(self.points),
            "possiblePoints": json_number(self.possible_points),
        }


@dataclass(frozen=True)
class ScoreSheet:
    total_points: Decimal
    correct_points: Decimal
    negative_points: Decimal
    final_points: Decimal
    score: int
    outcomes: List[QuestionOutcome] = field(default_factory=list)

    @property
    def results(self) -> Dict[str, dict]:
        return {str(outcome.question_id): outcome.as_result() for outcome in self.outcomes}


def json_number(value: Decimal):
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def percentage(final_points: Decimal, total_points: Decimal) -> int:
    if total_points <= 0:
        return 0
    ratio = final_points / total_points * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _lookup(answers, question_id):
    if str(question_id) in answers:
        return answers[str(question_id)]
    return answers.get(question_id)


def evaluate_answers(questions, answers) -> List[QuestionOutcome]:
    """
    ``answers`` maps question id (int or str) to a normalized submission;
    a missing key or ``None`` means the question was not answered.
    """
    outcomes = []
    for question in questions:
        points = Decimal(question.points)
        penalty = Decimal(question.negative_points)
        submitted = _lookup(answers, question.id)

        if submitted is None:
            outcomes.append(QuestionOutcome(question.id, False, False, ZERO, points))
            continue

        correct = is_correct(question.key, submitted)
        if correct:
            contribution = points
        else:
            contribution = -penalty if penalty > 0 else ZERO
        outcomes.append(QuestionOutcome(question.id, True, correct, contribution, points))
    return outcomes


def aggregate(outcomes) -> ScoreSheet:
    total = sum((o.possible_points for o in outcomes), ZERO)
    earned = sum((o.points for o in outcomes if o.correct), ZERO)
    negative = sum((-o.points for o in outcomes if o.answered and not o.correct), ZERO)
    final = earned - negative

    return ScoreSheet(
        total_points=total,
        correct_points=earned,
        negative_points=negative,
        final_points=final,
        score=percentage(final, total),
        outcomes=list(outcomes),
    )


def grade(questions, answers) -> ScoreSheet:
    return aggregate(evaluate_answers(questions, answers))
