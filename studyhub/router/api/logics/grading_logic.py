from dataclasses import dataclass, field
from typing import Iterable, List

from studyhub.model.questions import Question
from studyhub.schema.attempt_schema import ResponseIn

STRICT = "strict"
LEGACY = "legacy"
SCORING_POLICIES = (STRICT, LEGACY)


@dataclass
class GradedResponse:
    question: Question
    user_answer: str
    is_correct: bool
    points_earned: int


@dataclass
class GradeResult:
    graded: List[GradedResponse] = field(default_factory=list)
    skipped_question_ids: List[int] = field(default_factory=list)
    earned_points: int = 0
    possible_points: int = 0
    correct_answers: int = 0
    score: float = 0.0


def answers_match(submitted: str, expected: str) -> bool:
    """Trimmed, case-insensitive comparison of a submitted answer with the key."""
    return submitted.strip().lower() == expected.strip().lower()


def compute_score(earned: int, possible: int) -> float:
    if possible <= 0:
        return 0.0
    # multiply first so e.g. 57/100 lands exactly on 57.0
    return earned * 100 / possible


def grade_responses(
    questions: Iterable[Question],
    responses: Iterable[ResponseIn],
    policy: str = STRICT,
) -> GradeResult:
    """
    Grade submitted responses against the quiz's questions.

    Responses naming a question that is not part of the quiz, or repeating a
    question already graded, are not graded and end up in
    skipped_question_ids.

    With the "strict" policy the score is taken over the points of every
    question of the quiz. With "legacy" only the questions that were answered
    count towards the total, so leaving questions out raises the score.
    """
    if policy not in SCORING_POLICIES:
        raise ValueError(f"Unknown scoring policy: {policy}")

    questions = list(questions)
    question_map = {q.question_id: q for q in questions}
    result = GradeResult()
    seen = set()

    for response in responses:
        question = question_map.get(response.question_id)
        if question is None or response.question_id in seen:
            result.skipped_question_ids.append(response.question_id)
            continue
        seen.add(response.question_id)

        is_correct = answers_match(response.answer, question.correct_answer)
        points_earned = question.points if is_correct else 0
        result.graded.append(GradedResponse(
            question=question,
            user_answer=response.answer,
            is_correct=is_correct,
            points_earned=points_earned,
        ))
        result.earned_points += points_earned
        if is_correct:
            result.correct_answers += 1
        if policy == LEGACY:
            result.possible_points += question.points

    if policy == STRICT:
        result.possible_points = sum(q.points for q in questions)

    result.score = compute_score(result.earned_points, result.possible_points)
    return result


def is_passing(score: float, passing_score: float) -> bool:
    return score >= passing_score
