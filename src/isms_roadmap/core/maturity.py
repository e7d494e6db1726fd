"""Maturity tier classification."""

from __future__ import annotations

from ..models.common import Tier
from ..models.questionnaire import MaturityLevel

# (min score, tier, color, description), checked top-down
MATURITY_TIERS: list[tuple[float, Tier, str, str]] = [
    (90, Tier.EXCELLENCE, "success", "SMSI mature et robuste"),
    (75, Tier.AVANCE, "info", "SMSI bien structuré"),
    (60, Tier.INTERMEDIAIRE, "warning", "SMSI en développement"),
    (40, Tier.BASIQUE, "secondary", "SMSI en phase initiale"),
    (0, Tier.CRITIQUE, "danger", "SMSI nécessite une attention immédiate"),
]


def classify(score: float) -> MaturityLevel:
    """Map an overall score (0-100) to its maturity tier."""
    score = max(0.0, min(100.0, float(score)))
    for min_score, tier, color, description in MATURITY_TIERS:
        if score >= min_score:
            return MaturityLevel(level=tier, color=color, description=description)
    # Unreachable: the last tier starts at 0 and the score is clamped
    raise AssertionError(f"no tier for score {score}")
