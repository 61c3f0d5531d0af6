"""
Handoff package schemas.

Pydantic models for the artifact each stage hands to the next one.
Packages are frozen and store sequences as tuples: once a package passes
validation it becomes history and is never mutated.

Numeric ceilings (file sizes, quality floor, compatibility) are business
rules applied by HandoffValidator against configurable limits, so the
schemas below only enforce structure, types, non-emptiness and fixed ranges.
"""

from typing import Dict, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from pipeline.models.core import Stage


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


Score = int


# ===================================================================
# CONTENT -> DESIGN
# ===================================================================

class CompleteContent(_Frozen):
    """Copy produced by the content stage."""

    subject: str = Field(min_length=1, max_length=100)
    preheader: str = Field(min_length=1, max_length=150)
    body: str = Field(min_length=1, max_length=5000)
    cta: str = Field(min_length=1, max_length=50)


class ContentMetadata(_Frozen):
    language: str = Field(min_length=1, description="Checked against the supported language set")
    tone: str = Field(min_length=1)
    word_count: int = Field(gt=0)
    reading_time: int = Field(default=1, gt=0, description="Minutes")


class BrandGuidelines(_Frozen):
    voice_tone: str = Field(min_length=1)
    key_messages: Tuple[str, ...] = Field(min_length=1)
    compliance_notes: Tuple[str, ...] = ()


class ContentBody(_Frozen):
    """The content_package section; reused as original_content downstream."""

    complete_content: CompleteContent
    content_metadata: ContentMetadata
    brand_guidelines: BrandGuidelines


class DesignRequirements(_Frozen):
    template_type: Literal["promotional", "informational", "newsletter", "transactional"]
    visual_priority: Literal["text-heavy", "image-heavy", "balanced"]
    layout_preferences: Tuple[str, ...] = ()
    color_scheme: Optional[str] = None


class CampaignContext(_Frozen):
    topic: str = Field(min_length=1)
    target_audience: str = Field(min_length=1)
    destination: Optional[str] = None
    origin: Optional[str] = None
    urgency_level: Literal["low", "medium", "high", "critical"]


class ContentPackage(_Frozen):
    """Content stage output, validated by validate_content_to_design."""

    content_package: ContentBody
    design_requirements: DesignRequirements
    campaign_context: CampaignContext
    trace_id: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)


# ===================================================================
# DESIGN -> QUALITY
# ===================================================================

class EmailPackage(_Frozen):
    html_content: str = ""
    mjml_source: str = ""
    inline_css: str = ""
    asset_urls: Tuple[str, ...] = ()


class RenderingMetadata(_Frozen):
    template_type: str = Field(min_length=1)
    file_size_bytes: int = Field(ge=0)
    render_time_ms: int = Field(ge=0)
    optimization_applied: Tuple[str, ...] = ()


class PerformanceMetrics(_Frozen):
    css_rules_count: int = Field(default=0, ge=0)
    images_count: int = Field(default=0, ge=0)
    total_size_kb: float = Field(default=0, ge=0)


class DesignArtifacts(_Frozen):
    performance_metrics: PerformanceMetrics = PerformanceMetrics()
    accessibility_features: Tuple[str, ...] = ()
    responsive_breakpoints: Tuple[str, ...] = ()
    dark_mode_support: bool = False


class DesignPackage(_Frozen):
    """Design stage output, validated by validate_design_to_quality."""

    email_package: EmailPackage
    rendering_metadata: RenderingMetadata
    design_artifacts: DesignArtifacts
    original_content: ContentBody
    trace_id: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)


# ===================================================================
# QUALITY -> DELIVERY
# ===================================================================

class QualityResult(_Frozen):
    """The quality_package section."""

    validated_html: str = Field(min_length=1)
    quality_score: Score = Field(ge=0, le=100)
    validation_status: Literal["pending", "passed", "failed"]
    optimized_assets: Tuple[str, ...] = ()


class HtmlValidation(_Frozen):
    w3c_compliant: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


class CssValidation(_Frozen):
    valid: bool = True
    issues: Tuple[str, ...] = ()


# Clients covered by every compatibility report
EMAIL_CLIENTS: Tuple[str, ...] = ("gmail", "outlook", "apple_mail", "yahoo_mail")


class EmailClientCompatibility(_Frozen):
    gmail: bool
    outlook: bool
    apple_mail: bool
    yahoo_mail: bool
    compatibility_score: Score = Field(ge=0, le=100)


class TestResults(_Frozen):
    html_validation: HtmlValidation
    css_validation: CssValidation = CssValidation()
    email_client_compatibility: EmailClientCompatibility


class AccessibilityReport(_Frozen):
    wcag_aa_compliant: bool
    issues: Tuple[str, ...] = ()
    score: Score = Field(ge=0, le=100)


class PerformanceAnalysis(_Frozen):
    load_time_score: Score = Field(ge=0, le=100)
    file_size_score: Score = Field(ge=0, le=100)
    optimization_score: Score = Field(ge=0, le=100)


class SpamAnalysis(_Frozen):
    spam_score: float = Field(ge=0)
    risk_factors: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


class QualityPackage(_Frozen):
    """Quality stage output, validated by validate_quality_to_delivery."""

    quality_package: QualityResult
    test_results: TestResults
    accessibility_report: AccessibilityReport
    performance_analysis: PerformanceAnalysis
    spam_analysis: SpamAnalysis
    original_content: ContentBody
    trace_id: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)


# ===================================================================
# DELIVERY
# ===================================================================

class AssetFile(_Frozen):
    filename: str = Field(min_length=1)
    content: str = ""
    size_bytes: int = Field(ge=0)
    mime_type: str = Field(min_length=1)
    optimized: bool = False


class DeliveryMetadata(_Frozen):
    package_version: str = "1.0.0"
    creation_date: str = ""
    quality_score: Score = Field(ge=0, le=100)
    total_size_kb: float = Field(ge=0)


class DeliveryDocumentation(_Frozen):
    readme: str = Field(min_length=1)
    implementation_guide: str = Field(min_length=1)
    testing_notes: str = ""
    browser_support: str = ""
    troubleshooting: str = ""


class PreviewFile(_Frozen):
    filename: str = Field(min_length=1)
    content: str = ""
    type: Literal["desktop", "mobile", "dark_mode", "plain_text"]
    size_bytes: int = Field(default=0, ge=0)


class DeliveryPackage(_Frozen):
    """Final artifact, validated by validate_delivery_package."""

    html_email: str = Field(min_length=1)
    mjml_source: str = ""
    assets: Tuple[AssetFile, ...] = ()
    metadata: DeliveryMetadata
    documentation: DeliveryDocumentation
    preview_files: Tuple[PreviewFile, ...] = ()
    trace_id: str = Field(min_length=1)
    timestamp: str = Field(min_length=1)


HandoffPackage = Union[ContentPackage, DesignPackage, QualityPackage, DeliveryPackage]

PACKAGE_MODELS: Dict[Stage, Type[BaseModel]] = {
    Stage.CONTENT: ContentPackage,
    Stage.DESIGN: DesignPackage,
    Stage.QUALITY: QualityPackage,
    Stage.DELIVERY: DeliveryPackage,
}

# Top-level section that identifies each package type inside a raw mapping
STRUCTURE_KEYS: Dict[Stage, Tuple[str, ...]] = {
    Stage.CONTENT: ("content_package", "design_requirements"),
    Stage.DESIGN: ("email_package", "rendering_metadata"),
    Stage.QUALITY: ("quality_package", "test_results"),
    Stage.DELIVERY: ("html_email", "documentation"),
}


def stage_of(package) -> Optional[Stage]:
    """Return the stage a package (model or mapping) belongs to, if recognisable."""
    for stage, model in PACKAGE_MODELS.items():
        if isinstance(package, model):
            return stage
    if isinstance(package, dict):
        for stage, keys in STRUCTURE_KEYS.items():
            if keys[0] in package:
                return stage
    return None
