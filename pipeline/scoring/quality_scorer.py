"""
Quality Scorer

Combines five sub-scores into a weighted composite and an approval verdict.

Weights (read-only):
    integrity            0.15
    template             0.25
    client_compatibility 0.25
    accessibility        0.20
    performance          0.15
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from pipeline.models.core import ApprovalStatus, ValidationResult
from pipeline.models.packages import EMAIL_CLIENTS, QualityPackage

SCORE_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "integrity": 0.15,
    "template": 0.25,
    "client_compatibility": 0.25,
    "accessibility": 0.20,
    "performance": 0.15,
})

APPROVED_THRESHOLD = 85
REVISION_THRESHOLD = 70

# (sub-score, threshold, recommendation) - emitted when the sub-score is below threshold
_RECOMMENDATIONS: Tuple[Tuple[str, int, str], ...] = (
    ("integrity", 90, "Review design package integrity"),
    ("template", 90, "Address template validation issues"),
    ("client_compatibility", 85, "Improve email client compatibility"),
    ("accessibility", 80, "Improve accessibility compliance"),
    ("performance", 85, "Optimize performance"),
)

# Points removed from template / integrity per reported problem
_TEMPLATE_PENALTY_PER_ERROR = 10
_TEMPLATE_PENALTY_PER_WARNING = 2
_TEMPLATE_PENALTY_NON_W3C = 30
_INTEGRITY_PENALTY_PER_ERROR = 25


def clamp_score(value: Any) -> int:
    """Coerce to int (half-up rounding) and clamp into [0, 100]."""
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(float(value)))
    except (TypeError, ValueError, InvalidOperation):
        return 0
    if number.is_nan():
        return 0
    number = min(Decimal(100), max(Decimal(0), number))
    return int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def approval_status_for(score: int) -> ApprovalStatus:
    if score >= APPROVED_THRESHOLD:
        return ApprovalStatus.APPROVED
    if score >= REVISION_THRESHOLD:
        return ApprovalStatus.NEEDS_REVISION
    return ApprovalStatus.REJECTED


@dataclass(frozen=True)
class QualityReport:
    """Composite score, verdict and the inputs that produced them."""

    overall_score: int
    approval_status: ApprovalStatus
    sub_scores: Dict[str, int]
    recommendations: Tuple[str, ...] = ()
    summary_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "approval_status": self.approval_status.value,
            "sub_scores": dict(self.sub_scores),
            "recommendations": list(self.recommendations),
            "summary_stats": dict(self.summary_stats),
        }


class QualityScorer:
    """Stateless composite scorer; one instance is shared by all campaigns."""

    def __init__(self, weights: Mapping[str, float] = SCORE_WEIGHTS):
        self.weights = MappingProxyType(dict(weights))

    def score(
        self,
        sub_scores: Mapping[str, Any],
        summary_stats: Optional[Mapping[str, int]] = None,
    ) -> QualityReport:
        """
        Build a QualityReport from raw sub-scores.

        Missing sub-scores count as 0. Each one is clamped to [0, 100]
        before weighting, so the composite always lands in [0, 100].
        """
        clamped = {name: clamp_score(sub_scores.get(name, 0)) for name in self.weights}
        # Exact decimal sum so a composite of x.5 rounds up
        overall = clamp_score(sum(
            (Decimal(str(self.weights[name])) * clamped[name] for name in self.weights),
            Decimal(0),
        ))

        recommendations = tuple(
            text for name, threshold, text in _RECOMMENDATIONS
            if name in clamped and clamped[name] < threshold
        )

        return QualityReport(
            overall_score=overall,
            approval_status=approval_status_for(overall),
            sub_scores=clamped,
            recommendations=recommendations,
            summary_stats=dict(summary_stats or {}),
        )

    def score_quality_package(
        self,
        package: QualityPackage,
        integrity: Optional[ValidationResult] = None,
    ) -> QualityReport:
        return self.score(
            sub_scores_from_quality_package(package, integrity),
            summary_stats=summary_stats_for(package),
        )


def sub_scores_from_quality_package(
    package: QualityPackage,
    integrity: Optional[ValidationResult] = None,
) -> Dict[str, int]:
    """Derive the five sub-scores from a validated quality package."""
    results = package.test_results
    html = results.html_validation

    template = 100
    if not html.w3c_compliant:
        template -= _TEMPLATE_PENALTY_NON_W3C
    template -= _TEMPLATE_PENALTY_PER_ERROR * len(html.errors)
    template -= _TEMPLATE_PENALTY_PER_WARNING * len(html.warnings)
    template -= _TEMPLATE_PENALTY_PER_ERROR * len(results.css_validation.issues)

    perf = package.performance_analysis
    performance = (perf.load_time_score + perf.file_size_score + perf.optimization_score) / 3

    integrity_score = 100
    if integrity is not None:
        integrity_score -= _INTEGRITY_PENALTY_PER_ERROR * len(integrity.errors)

    return {
        "integrity": clamp_score(integrity_score),
        "template": clamp_score(template),
        "client_compatibility": clamp_score(results.email_client_compatibility.compatibility_score),
        "accessibility": clamp_score(package.accessibility_report.score),
        "performance": clamp_score(performance),
    }


def summary_stats_for(package: QualityPackage) -> Dict[str, int]:
    results = package.test_results
    total_issues = (
        len(results.html_validation.errors)
        + len(results.html_validation.warnings)
        + len(results.css_validation.issues)
        + len(package.accessibility_report.issues)
        + len(package.spam_analysis.risk_factors)
    )
    return {
        "total_issues": total_issues,
        "email_clients_tested": len(EMAIL_CLIENTS),
        "assets_analyzed": len(package.quality_package.optimized_assets),
        # html, css, clients, accessibility, performance, spam
        "total_tests_run": 6,
    }
