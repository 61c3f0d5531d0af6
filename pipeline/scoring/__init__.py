"""Composite quality scoring and approval verdicts."""

from pipeline.scoring.quality_scorer import (
    QualityReport,
    QualityScorer,
    SCORE_WEIGHTS,
    approval_status_for,
    sub_scores_from_quality_package,
)

__all__ = [
    "QualityReport",
    "QualityScorer",
    "SCORE_WEIGHTS",
    "approval_status_for",
    "sub_scores_from_quality_package",
]
