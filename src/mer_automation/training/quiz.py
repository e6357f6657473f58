"""Quiz scoring."""

import math

from mer_automation.common.exceptions import ValidationError

PASSING_SCORE = 100


def parse_score(score: str | int | float) -> tuple[float, float | None]:
    """Return (points, total) from a number or an "x/y" score string."""
    if isinstance(score, bool):
        raise ValidationError(f"Invalid score format: {score!r}")
    if isinstance(score, (int, float)):
        return float(score), None
    parts = str(score).split("/")
    if len(parts) != 2:
        raise ValidationError(f"Invalid score format: {score!r}")
    try:
        return float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        raise ValidationError(f"Invalid score format: {score!r}") from None


def score_percent(points: float, total_points: float) -> int:
    if total_points <= 0:
        raise ValidationError("Quiz total points must be positive")
    # Half-up rounding, so 99.5% counts as 100%.
    return math.floor(points / total_points * 100 + 0.5)


def passed_quiz(
    score: str | int | float,
    total_points: float | None = None,
    passing_score: int = PASSING_SCORE,
) -> bool:
    """True when the rounded percentage reaches ``passing_score``.

    ``total_points`` defaults to the denominator of an "x/y" score.
    """
    points, denominator = parse_score(score)
    total = total_points if total_points is not None else denominator
    if total is None:
        raise ValidationError("Quiz total points are required for a numeric score")
    return score_percent(points, total) >= passing_score
