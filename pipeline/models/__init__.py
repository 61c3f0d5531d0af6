"""
Models package for pipeline models

NOTE: not database models
"""

from .core import (
    # Enums
    ApprovalStatus,
    ErrorType,
    PipelineState,
    Severity,
    Stage,
    STAGE_ORDER,

    # Validation / correction
    CorrectionResponse,
    CorrectionSuggestion,
    Corrected,
    Exhausted,
    ValidationIssue,
    ValidationResult,

    # Producer I/O
    StageContext,
    StageOutput,
)
from .packages import (
    ContentPackage,
    DeliveryPackage,
    DesignPackage,
    HandoffPackage,
    PACKAGE_MODELS,
    QualityPackage,
)

__all__ = [
    # Enums
    "ApprovalStatus",
    "ErrorType",
    "PipelineState",
    "Severity",
    "Stage",
    "STAGE_ORDER",

    # Validation / correction
    "CorrectionResponse",
    "CorrectionSuggestion",
    "Corrected",
    "Exhausted",
    "ValidationIssue",
    "ValidationResult",

    # Producer I/O
    "StageContext",
    "StageOutput",

    # Packages
    "ContentPackage",
    "DesignPackage",
    "QualityPackage",
    "DeliveryPackage",
    "HandoffPackage",
    "PACKAGE_MODELS",
]
