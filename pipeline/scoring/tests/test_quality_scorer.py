"""
Unit tests for QualityScorer.

Run with:
    pytest pipeline/scoring/tests/test_quality_scorer.py -v
"""

import pytest

from pipeline.models.core import ApprovalStatus
from pipeline.models.packages import QualityPackage
from pipeline.scoring.quality_scorer import (
    SCORE_WEIGHTS,
    QualityScorer,
    approval_status_for,
    clamp_score,
    sub_scores_from_quality_package,
)
from tests.factories import quality_package, set_path


def _uniform(score):
    return {name: score for name in SCORE_WEIGHTS}


@pytest.mark.unit
@pytest.mark.parametrize("score, expected", [
    (0, ApprovalStatus.REJECTED),
    (69, ApprovalStatus.REJECTED),
    (70, ApprovalStatus.NEEDS_REVISION),
    (84, ApprovalStatus.NEEDS_REVISION),
    (85, ApprovalStatus.APPROVED),
    (100, ApprovalStatus.APPROVED),
])
def test_approval_boundaries(score, expected):
    assert approval_status_for(score) == expected
    assert QualityScorer().score(_uniform(score)).approval_status == expected


@pytest.mark.unit
def test_weights_sum_to_one_and_are_read_only():
    assert sum(SCORE_WEIGHTS.values()) == pytest.approx(1.0)
    with pytest.raises(TypeError):
        SCORE_WEIGHTS["integrity"] = 1.0


@pytest.mark.unit
def test_weighted_composite():
    report = QualityScorer().score({
        "integrity": 100,
        "template": 80,
        "client_compatibility": 90,
        "accessibility": 70,
        "performance": 62,
    })

    # 15 + 20 + 22.5 + 14 + 9.3 = 80.8
    assert report.overall_score == 81
    assert report.approval_status == ApprovalStatus.NEEDS_REVISION


@pytest.mark.unit
def test_composite_of_exact_half_rounds_up():
    report = QualityScorer().score({
        "integrity": 82,
        "template": 94,
        "client_compatibility": 88,
        "accessibility": 33,
        "performance": 34,
    })

    # 12.3 + 23.5 + 22 + 6.6 + 5.1 = 69.5
    assert report.overall_score == 70
    assert report.approval_status == ApprovalStatus.NEEDS_REVISION


@pytest.mark.unit
def test_out_of_range_sub_scores_are_clamped():
    report = QualityScorer().score({
        "integrity": 250,
        "template": -40,
        "client_compatibility": 100,
        "accessibility": 100,
        "performance": "bad",
    })

    assert report.sub_scores["integrity"] == 100
    assert report.sub_scores["template"] == 0
    assert report.sub_scores["performance"] == 0
    assert 0 <= report.overall_score <= 100


@pytest.mark.unit
def test_missing_sub_scores_count_as_zero():
    report = QualityScorer().score({})

    assert report.overall_score == 0
    assert report.approval_status == ApprovalStatus.REJECTED


@pytest.mark.unit
def test_clamp_score():
    assert clamp_score(101.7) == 100
    assert clamp_score(-3) == 0
    assert clamp_score(84.5) == 85
    assert clamp_score(84.4) == 84
    assert clamp_score(None) == 0
    assert clamp_score(float("nan")) == 0


@pytest.mark.unit
def test_recommendations_follow_thresholds():
    report = QualityScorer().score({
        "integrity": 89,
        "template": 95,
        "client_compatibility": 84,
        "accessibility": 79,
        "performance": 90,
    })

    assert report.recommendations == (
        "Review design package integrity",
        "Improve email client compatibility",
        "Improve accessibility compliance",
    )


@pytest.mark.unit
def test_no_recommendations_for_strong_scores():
    assert QualityScorer().score(_uniform(100)).recommendations == ()


@pytest.mark.unit
def test_sub_scores_from_quality_package():
    package = set_path(quality_package(), "test_results.html_validation.warnings", ["minor nesting"])
    package = QualityPackage.model_validate(package)

    scores = sub_scores_from_quality_package(package)

    assert scores == {
        "integrity": 100,
        "template": 98,
        "client_compatibility": 98,
        "accessibility": 92,
        "performance": 91,
    }


@pytest.mark.unit
def test_report_to_dict_and_summary_stats():
    package = QualityPackage.model_validate(quality_package())

    report = QualityScorer().score_quality_package(package)
    data = report.to_dict()

    assert data["approval_status"] == "approved"
    assert data["summary_stats"]["email_clients_tested"] == 4
    assert data["summary_stats"]["assets_analyzed"] == 1
    assert data["summary_stats"]["total_issues"] == 0
