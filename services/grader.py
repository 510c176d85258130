# services/grader.py
from typing import Dict, List, Optional
from pydantic import BaseModel
from models.course import Question
from errors import NotFoundError, ValidationError

class QuestionResult(BaseModel):
    question: str
    options: List[str]
    correctAnswer: str
    userAnswer: Optional[str] = None
    isCorrect: bool
    explanation: Optional[str] = None

class GradeResult(BaseModel):
    score: int
    correctCount: int
    totalQuestions: int
    results: List[QuestionResult]

def round_half_up_percent(numerator: int, denominator: int) -> int:
    """round(numerator / denominator * 100) with halves rounded up, in integers."""
    return (numerator * 200 + denominator) // (2 * denominator)

def normalize_answers(answers) -> Dict[int, str]:
    """Accept {index: answer} with int or numeric-string keys (JSON objects
    always arrive with string keys). Non-numeric keys are ignored."""
    if not isinstance(answers, dict):
        raise ValidationError("Answers must be an object mapping question index to answer.")
    normalized = {}
    for key, value in answers.items():
        try:
            index = int(key)
        except (TypeError, ValueError):
            continue
        if value is None:
            continue
        normalized[index] = str(value)
    return normalized

def grade(questions: List[Question], answers) -> GradeResult:
    """Score submitted answers against the answer key.

    A question without an answer counts as incorrect. An empty question list
    has nothing to grade and is reported as a missing quiz.
    """
    if not questions:
        raise NotFoundError("Quiz not found.")
    submitted = normalize_answers(answers)

    results = []
    correct = 0
    for index, q in enumerate(questions):
        user_answer = submitted.get(index)
        is_correct = user_answer is not None and user_answer == q.correctAnswer
        if is_correct:
            correct += 1
        results.append(QuestionResult(
            question=q.question,
            options=q.options,
            correctAnswer=q.correctAnswer,
            userAnswer=user_answer,
            isCorrect=is_correct,
            explanation=q.explanation,
        ))

    return GradeResult(
        score=round_half_up_percent(correct, len(questions)),
        correctCount=correct,
        totalQuestions=len(questions),
        results=results,
    )

def mean_score(scores: List[int]) -> int:
    """Rounded (half up) integer mean, 0 for no scores."""
    if not scores:
        return 0
    return (sum(scores) * 2 + len(scores)) // (2 * len(scores))
