"""
Unit tests for HandoffValidator.

Run with:
    pytest pipeline/validation/tests/test_handoff_validator.py -v
"""

import copy

import pytest

from config.settings import HandoffLimits
from pipeline.models.core import ErrorType, Severity, Stage
from pipeline.models.packages import ContentPackage, DeliveryPackage, DesignPackage, QualityPackage
from pipeline.validation.handoff_validator import HandoffValidator, is_well_formed_url
from tests.factories import (
    content_package,
    delivery_package,
    design_package,
    quality_package,
    set_path,
)


def _errors_for(result, field):
    return [e for e in result.errors if e.field == field]


# ===================================================================
# CONTENT -> DESIGN
# ===================================================================

@pytest.mark.unit
def test_valid_content_package_passes(validator):
    result = validator.validate_content_to_design(content_package())

    assert result.is_valid
    assert result.errors == ()
    assert result.handoff_type == "content-to-design"
    assert isinstance(result.validated_data, ContentPackage)


@pytest.mark.unit
def test_valid_mapping_yields_parsed_model(validator):
    package = design_package()

    result = validator.validate_design_to_quality(package)

    assert result.validated_data == DesignPackage.model_validate(package)
    assert result.validated_data.trace_id == package["trace_id"]


@pytest.mark.unit
@pytest.mark.parametrize("stage, builder, model", [
    (Stage.CONTENT, content_package, ContentPackage),
    (Stage.DESIGN, design_package, DesignPackage),
    (Stage.QUALITY, quality_package, QualityPackage),
    (Stage.DELIVERY, delivery_package, DeliveryPackage),
])
def test_valid_package_passes_through_unchanged(validator, stage, builder, model):
    """Validating an already-parsed valid package hands back that same package."""
    package = model.model_validate(builder())

    result = validator.validate_for_stage(stage, package)

    assert result.is_valid
    assert result.validated_data == package


@pytest.mark.unit
def test_empty_subject_is_invalid_value(validator):
    package = set_path(content_package(), "content_package.complete_content.subject", "")

    result = validator.validate_content_to_design(package)

    assert not result.is_valid
    errors = _errors_for(result, "content_package.complete_content.subject")
    assert len(errors) == 1
    assert errors[0].error_type == ErrorType.INVALID_VALUE
    assert result.validated_data is None


@pytest.mark.unit
def test_all_errors_are_reported_not_just_the_first(validator):
    package = set_path(content_package(), "content_package.complete_content.subject", "")
    package = set_path(package, "content_package.complete_content.cta", "")
    package = set_path(package, "design_requirements.template_type", "video")

    result = validator.validate_content_to_design(package)

    fields = set(result.error_fields)
    assert "content_package.complete_content.subject" in fields
    assert "content_package.complete_content.cta" in fields
    assert "design_requirements.template_type" in fields
    assert len(result.correction_suggestions) == len(result.errors)


@pytest.mark.unit
def test_missing_trace_id_is_critical(validator):
    package = content_package()
    del package["trace_id"]

    result = validator.validate_content_to_design(package)

    errors = _errors_for(result, "trace_id")
    assert errors[0].error_type == ErrorType.MISSING
    assert errors[0].severity == Severity.CRITICAL
    assert result.has_critical


@pytest.mark.unit
def test_subject_over_limit_is_size_limit(validator):
    package = set_path(content_package(), "content_package.complete_content.subject", "S" * 101)

    result = validator.validate_content_to_design(package)

    assert _errors_for(result, "content_package.complete_content.subject")[0].error_type == ErrorType.SIZE_LIMIT


@pytest.mark.unit
def test_unsupported_language_is_rejected(validator):
    package = set_path(content_package(), "content_package.content_metadata.language", "de")

    result = validator.validate_content_to_design(package)

    errors = _errors_for(result, "content_package.content_metadata.language")
    assert errors[0].error_type == ErrorType.INVALID_VALUE
    assert errors[0].severity == Severity.MAJOR


@pytest.mark.unit
def test_supported_languages_come_from_limits():
    validator = HandoffValidator(HandoffLimits(supported_languages=("de",)))
    package = set_path(content_package(), "content_package.content_metadata.language", "de")

    assert validator.validate_content_to_design(package).is_valid


@pytest.mark.unit
def test_word_count_mismatch_is_only_a_warning(validator):
    package = set_path(content_package(), "content_package.content_metadata.word_count", 500)

    result = validator.validate_content_to_design(package)

    assert result.is_valid
    assert any("word_count" in w for w in result.warnings)


@pytest.mark.unit
def test_input_mapping_is_not_mutated(validator):
    package = set_path(content_package(), "content_package.complete_content.subject", "")
    before = copy.deepcopy(package)

    validator.validate_content_to_design(package)

    assert package == before


@pytest.mark.unit
def test_non_mapping_input_is_reported(validator):
    result = validator.validate_content_to_design("not a package")

    assert not result.is_valid
    assert _errors_for(result, "root")[0].error_type == ErrorType.FORMAT_ERROR


# ===================================================================
# DESIGN -> QUALITY
# ===================================================================

@pytest.mark.unit
def test_valid_design_package_passes(validator):
    result = validator.validate_design_to_quality(design_package())

    assert result.is_valid, result.to_dict()
    assert isinstance(result.validated_data, DesignPackage)


@pytest.mark.unit
def test_file_size_over_limit_is_size_limit(validator):
    package = set_path(design_package(), "rendering_metadata.file_size_bytes", 150000)

    result = validator.validate_design_to_quality(package)

    assert not result.is_valid
    errors = _errors_for(result, "rendering_metadata.file_size_bytes")
    assert errors[0].error_type == ErrorType.SIZE_LIMIT
    assert errors[0].current_value == 150000
    assert errors[0].expected_value == 100000
    assert not result.has_critical


@pytest.mark.unit
def test_html_over_byte_ceiling_is_critical(validator):
    package = set_path(design_package(), "email_package.html_content", "x" * 100_001)

    result = validator.validate_design_to_quality(package)

    errors = _errors_for(result, "email_package.html_content")
    assert errors[0].error_type == ErrorType.SIZE_LIMIT
    assert errors[0].severity == Severity.CRITICAL


@pytest.mark.unit
def test_missing_html_and_mjml_is_critical(validator):
    package = set_path(design_package(), "email_package.html_content", "")
    package = set_path(package, "email_package.mjml_source", "")

    result = validator.validate_design_to_quality(package)

    errors = _errors_for(result, "email_package.html_content")
    assert errors[0].error_type == ErrorType.MISSING
    assert errors[0].severity == Severity.CRITICAL


@pytest.mark.unit
def test_malformed_asset_url_is_format_error(validator):
    package = set_path(design_package(), "email_package.asset_urls", ["https://cdn.example.com/a.png", "hero.jpg"])

    result = validator.validate_design_to_quality(package)

    errors = _errors_for(result, "email_package.asset_urls.1")
    assert errors[0].error_type == ErrorType.FORMAT_ERROR
    assert not _errors_for(result, "email_package.asset_urls.0")


@pytest.mark.unit
def test_slow_render_is_minor(validator):
    package = set_path(design_package(), "rendering_metadata.render_time_ms", 1500)

    result = validator.validate_design_to_quality(package)

    errors = _errors_for(result, "rendering_metadata.render_time_ms")
    assert errors[0].error_type == ErrorType.INVALID_VALUE
    assert errors[0].severity == Severity.MINOR


@pytest.mark.unit
def test_wrong_type_is_format_error(validator):
    package = set_path(design_package(), "rendering_metadata.file_size_bytes", "big")

    result = validator.validate_design_to_quality(package)

    errors = _errors_for(result, "rendering_metadata.file_size_bytes")
    assert len(errors) == 1
    assert errors[0].error_type == ErrorType.FORMAT_ERROR
    assert errors[0].severity == Severity.MAJOR


@pytest.mark.unit
def test_design_total_size_over_limit(validator):
    package = set_path(design_package(), "design_artifacts.performance_metrics.total_size_kb", 150)

    result = validator.validate_design_to_quality(package)

    assert _errors_for(result, "design_artifacts.performance_metrics.total_size_kb")[0].error_type == ErrorType.SIZE_LIMIT


# ===================================================================
# QUALITY -> DELIVERY
# ===================================================================

@pytest.mark.unit
def test_valid_quality_package_passes(validator):
    result = validator.validate_quality_to_delivery(quality_package())

    assert result.is_valid, result.to_dict()


@pytest.mark.unit
def test_quality_score_below_floor_is_critical(validator):
    result = validator.validate_quality_to_delivery(quality_package(quality_score=65))

    assert not result.is_valid
    errors = _errors_for(result, "quality_package.quality_score")
    assert errors[0].severity == Severity.CRITICAL
    assert result.has_critical


@pytest.mark.unit
def test_quality_score_out_of_range_is_rejected(validator):
    result = validator.validate_quality_to_delivery(quality_package(quality_score=150))

    errors = _errors_for(result, "quality_package.quality_score")
    assert errors[0].error_type == ErrorType.INVALID_VALUE
    assert errors[0].severity == Severity.CRITICAL


@pytest.mark.unit
@pytest.mark.parametrize("status, severity", [
    ("failed", Severity.CRITICAL),
    ("pending", Severity.MAJOR),
])
def test_validation_status_must_be_passed(validator, status, severity):
    package = set_path(quality_package(), "quality_package.validation_status", status)

    result = validator.validate_quality_to_delivery(package)

    errors = _errors_for(result, "quality_package.validation_status")
    assert errors[0].severity == severity


@pytest.mark.unit
def test_non_w3c_html_is_critical(validator):
    package = set_path(quality_package(), "test_results.html_validation.w3c_compliant", False)

    result = validator.validate_quality_to_delivery(package)

    assert _errors_for(result, "test_results.html_validation.w3c_compliant")[0].severity == Severity.CRITICAL


@pytest.mark.unit
@pytest.mark.parametrize("path, value", [
    ("test_results.email_client_compatibility.compatibility_score", 90),
    ("accessibility_report.score", 70),
    ("accessibility_report.wcag_aa_compliant", False),
    ("spam_analysis.spam_score", 5.0),
])
def test_correctable_quality_thresholds_are_major(validator, path, value):
    package = set_path(quality_package(), path, value)

    result = validator.validate_quality_to_delivery(package)

    assert not result.is_valid
    errors = _errors_for(result, path)
    assert errors[0].severity == Severity.MAJOR
    assert not result.has_critical


@pytest.mark.unit
def test_unsupported_client_is_a_warning(validator):
    package = set_path(quality_package(), "test_results.email_client_compatibility.outlook", False)

    result = validator.validate_quality_to_delivery(package)

    assert result.is_valid
    assert any("outlook" in w for w in result.warnings)


# ===================================================================
# DELIVERY
# ===================================================================

@pytest.mark.unit
def test_valid_delivery_package_passes(validator):
    result = validator.validate_delivery_package(delivery_package())

    assert result.is_valid, result.to_dict()


@pytest.mark.unit
def test_delivery_over_package_ceiling_is_critical(validator):
    package = set_path(delivery_package(), "metadata.total_size_kb", 700)

    result = validator.validate_delivery_package(package)

    errors = _errors_for(result, "metadata.total_size_kb")
    assert errors[0].error_type == ErrorType.SIZE_LIMIT
    assert errors[0].severity == Severity.CRITICAL


@pytest.mark.unit
def test_delivery_actual_size_counts_even_if_declared_small(validator):
    package = set_path(delivery_package(), "mjml_source", "m" * (601 * 1024))

    result = validator.validate_delivery_package(package)

    assert _errors_for(result, "metadata.total_size_kb")[0].error_type == ErrorType.SIZE_LIMIT


@pytest.mark.unit
def test_asset_size_mismatch_is_consistency_error(validator):
    package = set_path(delivery_package(), "assets.0.size_bytes", 999)

    result = validator.validate_delivery_package(package)

    errors = _errors_for(result, "assets.0.size_bytes")
    assert errors[0].error_type == ErrorType.CONSISTENCY_ERROR


@pytest.mark.unit
def test_delivery_requires_documentation(validator):
    package = set_path(delivery_package(), "documentation.readme", "")

    result = validator.validate_delivery_package(package)

    assert not result.is_valid
    assert "documentation.readme" in result.error_fields


# ===================================================================
# URL HELPER
# ===================================================================

@pytest.mark.unit
@pytest.mark.parametrize("url, expected", [
    ("https://cdn.example.com/a.png", True),
    ("http://example.com", True),
    ("ftp://example.com/a.png", False),
    ("/relative/path.png", False),
    ("https://exa mple.com", False),
    ("", False),
    (None, False),
])
def test_is_well_formed_url(url, expected):
    assert is_well_formed_url(url) is expected
