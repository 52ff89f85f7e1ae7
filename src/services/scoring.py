"""Go/No-Go weighted scoring.

Combines per-criterion 1-5 scores with a fixed weight table into a
weighted percentage and a three-way decision.  Criteria without a score
are left out of both the total and the maximum, so a partially-scored
assessment is judged only on what has been scored so far.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_SCORE = 1
MAX_SCORE = 5

GO_THRESHOLD = 75.0
INVESTIGATE_THRESHOLD = 50.0


@dataclass(frozen=True)
class Criterion:
    key: str
    label: str
    weight: int


CRITERIA: tuple[Criterion, ...] = (
    Criterion("commissioning_demand", "Commissioning Demand", 3),
    Criterion("ofsted_rating", "Ofsted Rating", 2),
    Criterion("financial_health", "Financial Health", 2),
    Criterion("building_condition", "Building Condition", 2),
    Criterion("staffing_leadership", "Staffing/Leadership", 2),
    Criterion("legals_compliance", "Legals/Compliance", 1),
    Criterion("location_access", "Location/Access", 1),
    Criterion("reputation", "Reputation", 1),
    Criterion("synergy", "Synergy", 1),
)

WEIGHTS: dict[str, int] = {c.key: c.weight for c in CRITERIA}
LABELS: dict[str, str] = {c.key: c.label for c in CRITERIA}


class Decision(str, enum.Enum):
    GO = "GO"
    INVESTIGATE = "INVESTIGATE"
    AVOID = "AVOID"


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CriterionScore:
    key: str
    label: str
    weight: int
    score: int | None


@dataclass(frozen=True)
class ScoringResult:
    total_score: int
    max_possible: int
    percentage: float
    decision: Decision
    criteria: list[CriterionScore] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "max_possible": self.max_possible,
            "percentage": self.percentage,
            "decision": self.decision.value,
            "criteria": [
                {"key": c.key, "label": c.label, "weight": c.weight, "score": c.score} for c in self.criteria
            ],
        }


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def decide(percentage: float) -> Decision:
    """Map a weighted percentage to a decision (75 and 50 are inclusive cut-offs)."""
    if percentage >= GO_THRESHOLD:
        return Decision.GO
    if percentage >= INVESTIGATE_THRESHOLD:
        return Decision.INVESTIGATE
    return Decision.AVOID


def calculate_score(scores: Mapping[str, int | None]) -> ScoringResult:
    """Compute the weighted Go/No-Go result for a criterion -> score mapping.

    Keys are criterion keys from :data:`CRITERIA`; unknown keys are ignored
    and missing keys count as unscored.

    Raises
    ------
    ValueError
        If a present score is not an integer between 1 and 5.
    """
    total_score = 0
    max_possible = 0
    breakdown: list[CriterionScore] = []

    for criterion in CRITERIA:
        score = scores.get(criterion.key)
        if score is not None:
            if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
                raise ValueError(f"Score for {criterion.key!r} must be an integer 1-5, got {score!r}")
            total_score += score * criterion.weight
            max_possible += MAX_SCORE * criterion.weight
        breakdown.append(CriterionScore(criterion.key, criterion.label, criterion.weight, score))

    percentage = (total_score / max_possible) * 100 if max_possible > 0 else 0.0

    return ScoringResult(
        total_score=total_score,
        max_possible=max_possible,
        percentage=percentage,
        decision=decide(percentage),
        criteria=breakdown,
    )


def effective_scores(
    auto_scores: Mapping[str, int | None],
    overrides: Mapping[str, int | None] | None = None,
) -> dict[str, int | None]:
    """Merge manual overrides over auto-scores.

    A key present in *overrides* wins even when its value is ``None``,
    which lets a reviewer clear an auto-score they disagree with.
    """
    overrides = overrides or {}
    merged: dict[str, int | None] = {}
    for criterion in CRITERIA:
        if criterion.key in overrides:
            merged[criterion.key] = overrides[criterion.key]
        else:
            merged[criterion.key] = auto_scores.get(criterion.key)
    return merged
