"""
Handoff Validator

Validates every artifact that crosses a stage boundary:
- content -> design    (validate_content_to_design)
- design -> quality    (validate_design_to_quality)
- quality -> delivery  (validate_quality_to_delivery)
- final delivery pkg   (validate_delivery_package)
- whole chain          (validate_handoff_integrity)

Each check runs schema validation (pydantic) and the business rules on the
raw data independently, so a result always carries every issue found.
Validation is pure: no I/O, no shared mutable state, input never mutated.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type
from urllib.parse import urlparse

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config.settings import HandoffLimits
from pipeline.models.core import (
    CorrectionSuggestion,
    ErrorType,
    Severity,
    Stage,
    STAGE_ORDER,
    ValidationIssue,
    ValidationResult,
)
from pipeline.models.packages import (
    ContentPackage,
    DeliveryPackage,
    DesignPackage,
    EMAIL_CLIENTS,
    QualityPackage,
    stage_of,
)
from pipeline.validation.schema_errors import (
    as_mapping,
    as_number,
    get_path,
    issues_from_pydantic,
    merge_issues,
)

RuleFn = Callable[[Dict[str, Any]], Tuple[List[ValidationIssue], List[str]]]

_SUGGESTIONS: Dict[str, Dict[str, str]] = {
    "content-to-design": {
        "content_package.complete_content.subject": "Subject must be 1-100 characters",
        "content_package.complete_content.preheader": "Preheader must be 1-150 characters",
        "content_package.complete_content.body": "Body must be 1-5000 characters of structured text",
        "content_package.complete_content.cta": "CTA must be 1-50 characters",
        "content_package.content_metadata.language": "Language must be one of the supported languages",
        "content_package.content_metadata.word_count": "Word count must be a positive integer matching the body",
        "design_requirements.template_type": "Type must be: promotional, informational, newsletter, transactional",
        "campaign_context.urgency_level": "Urgency must be: low, medium, high, critical",
    },
    "design-to-quality": {
        "email_package.html_content": "HTML content must be present, valid and within the size ceiling",
        "email_package.asset_urls": "Asset URLs must be absolute http(s) URLs",
        "rendering_metadata.file_size_bytes": "Rendered size must stay within the byte ceiling; inline and minify CSS",
        "rendering_metadata.render_time_ms": "Render time must stay under the configured limit",
        "design_artifacts.performance_metrics.total_size_kb": "Total design size must stay within the KB ceiling",
    },
    "quality-to-delivery": {
        "quality_package.quality_score": "Quality score must be at or above the floor",
        "quality_package.validation_status": "Validation status must be 'passed' before delivery",
        "test_results.html_validation.w3c_compliant": "Fix every HTML error until the markup is W3C compliant",
        "test_results.email_client_compatibility.compatibility_score": "Use table layouts and inline styles to raise client compatibility",
        "accessibility_report.score": "Add alt text and fix contrast to reach WCAG AA",
        "accessibility_report.wcag_aa_compliant": "Resolve accessibility issues until WCAG AA compliant",
        "spam_analysis.spam_score": "Remove spam trigger words and balance text/image ratio",
    },
    "delivery": {
        "metadata.total_size_kb": "Compress assets and minify HTML to fit the package ceiling",
        "html_email": "Final HTML email is required",
        "metadata.quality_score": "Only packages at or above the quality floor may be delivered",
    },
}

_PRIORITY = {Severity.CRITICAL: "high", Severity.MAJOR: "medium", Severity.MINOR: "low"}


def is_well_formed_url(value: Any) -> bool:
    """Absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value.strip() or any(c.isspace() for c in value):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class HandoffValidator:
    """
    Stateless validator for inter-stage handoffs.

    One instance can be shared by any number of concurrently running
    campaigns: the only state it holds is the frozen HandoffLimits.

    Each validate_* method accepts a raw mapping or a package model. On
    success validated_data is the parsed package model: the input itself when
    it already is one, otherwise the model parsed from the mapping.
    """

    def __init__(self, limits: Optional[HandoffLimits] = None):
        self.limits = limits or HandoffLimits()

    # ===================================================================
    # PUBLIC API
    # ===================================================================

    def validate_content_to_design(self, package: Any) -> ValidationResult:
        return self._validate(package, ContentPackage, "content-to-design", self._content_rules)

    def validate_design_to_quality(self, package: Any) -> ValidationResult:
        return self._validate(package, DesignPackage, "design-to-quality", self._design_rules)

    def validate_quality_to_delivery(self, package: Any) -> ValidationResult:
        return self._validate(package, QualityPackage, "quality-to-delivery", self._quality_rules)

    def validate_delivery_package(self, package: Any) -> ValidationResult:
        return self._validate(package, DeliveryPackage, "delivery", self._delivery_rules)

    def validate_for_stage(self, stage: Stage, package: Any) -> ValidationResult:
        """Dispatch to the validator responsible for a stage's output."""
        validators = {
            Stage.CONTENT: self.validate_content_to_design,
            Stage.DESIGN: self.validate_design_to_quality,
            Stage.QUALITY: self.validate_quality_to_delivery,
            Stage.DELIVERY: self.validate_delivery_package,
        }
        return validators[Stage(stage)](package)

    def validate_handoff_integrity(self, chain: Sequence[Any]) -> ValidationResult:
        """
        Check a sequence of packages belongs to one campaign run.

        Every package must carry trace_id and timestamp, appear in stage
        order, share one trace identifier, and reference the same original
        content. A broken chain is reported as consistency_error.
        """
        errors: List[ValidationIssue] = []
        warnings: List[str] = []

        if not chain:
            errors.append(ValidationIssue(
                field="chain",
                error_type=ErrorType.MISSING,
                message="Handoff chain is empty",
                severity=Severity.CRITICAL,
            ))
            return self._build_result(errors, warnings, "integrity", None)

        mappings = [as_mapping(pkg) for pkg in chain]
        stages = [stage_of(pkg) for pkg in chain]

        for index, (data, stage) in enumerate(zip(mappings, stages)):
            for required in ("trace_id", "timestamp"):
                if not data.get(required):
                    errors.append(ValidationIssue(
                        field=required,
                        error_type=ErrorType.MISSING,
                        message=f"Package {index} has no {required}",
                        severity=Severity.CRITICAL,
                    ))
            if stage is None:
                errors.append(ValidationIssue(
                    field="structure",
                    error_type=ErrorType.MISSING,
                    message=f"Package {index} does not match any known handoff structure",
                    severity=Severity.CRITICAL,
                ))

        known = [(i, s) for i, s in enumerate(stages) if s is not None]
        for (prev_i, prev_s), (cur_i, cur_s) in zip(known, known[1:]):
            if STAGE_ORDER.index(cur_s) <= STAGE_ORDER.index(prev_s):
                errors.append(ValidationIssue(
                    field="chain",
                    error_type=ErrorType.CONSISTENCY_ERROR,
                    message=f"Package {cur_i} ({cur_s.value}) is out of order after package {prev_i} ({prev_s.value})",
                    severity=Severity.MAJOR,
                ))

        for index in range(1, len(mappings)):
            previous = mappings[index - 1].get("trace_id")
            current = mappings[index].get("trace_id")
            if previous and current and previous != current:
                errors.append(ValidationIssue(
                    field="trace_id",
                    error_type=ErrorType.CONSISTENCY_ERROR,
                    message=f"trace_id mismatch between package {index - 1} and {index}",
                    severity=Severity.CRITICAL,
                    current_value=current,
                    expected_value=previous,
                ))

        by_stage = {s: mappings[i] for i, s in known}
        content = by_stage.get(Stage.CONTENT)
        if content is not None:
            expected_content = content.get("content_package")
            for stage in (Stage.DESIGN, Stage.QUALITY):
                downstream = by_stage.get(stage)
                if downstream is not None and downstream.get("original_content") != expected_content:
                    errors.append(ValidationIssue(
                        field="original_content",
                        error_type=ErrorType.CONSISTENCY_ERROR,
                        message=f"{stage.value} package does not carry the validated content as original_content",
                        severity=Severity.MAJOR,
                    ))

        quality = by_stage.get(Stage.QUALITY)
        delivery = by_stage.get(Stage.DELIVERY)
        if quality is not None and delivery is not None:
            expected_score = get_path(quality, "quality_package.quality_score")
            delivered_score = get_path(delivery, "metadata.quality_score")
            if expected_score != delivered_score:
                errors.append(ValidationIssue(
                    field="metadata.quality_score",
                    error_type=ErrorType.CONSISTENCY_ERROR,
                    message="Delivery metadata quality_score differs from the quality package",
                    severity=Severity.MAJOR,
                    current_value=delivered_score,
                    expected_value=expected_score,
                ))

        if len(known) < len(STAGE_ORDER):
            warnings.append(f"Chain covers {len(known)} of {len(STAGE_ORDER)} stages")

        return self._build_result(errors, warnings, "integrity", tuple(chain))

    # ===================================================================
    # CORE
    # ===================================================================

    def _validate(
        self,
        package: Any,
        model: Type[BaseModel],
        handoff_type: str,
        rules: RuleFn,
    ) -> ValidationResult:
        data = as_mapping(package)
        issues: List[ValidationIssue] = []
        parsed: Optional[BaseModel] = None

        try:
            parsed = model.model_validate(data)
        except PydanticValidationError as exc:
            issues.extend(issues_from_pydantic(exc))

        if not isinstance(package, (dict, BaseModel)):
            issues.append(ValidationIssue(
                field="root",
                error_type=ErrorType.FORMAT_ERROR,
                message=f"Expected a mapping or package model, got {type(package).__name__}",
                severity=Severity.CRITICAL,
            ))

        rule_issues, warnings = rules(data)
        issues.extend(rule_issues)

        validated = None
        if parsed is not None:
            validated = package if isinstance(package, model) else parsed
        return self._build_result(issues, warnings, handoff_type, validated)

    def _build_result(
        self,
        issues: Sequence[ValidationIssue],
        warnings: Sequence[str],
        handoff_type: str,
        validated: Any,
    ) -> ValidationResult:
        errors = merge_issues(issues) if handoff_type != "integrity" else tuple(issues)
        is_valid = not errors
        return ValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=tuple(warnings),
            correction_suggestions=tuple(self._suggest(errors, handoff_type)),
            validated_data=validated if is_valid else None,
            handoff_type=handoff_type,
        )

    def _suggest(self, errors: Sequence[ValidationIssue], handoff_type: str) -> List[CorrectionSuggestion]:
        table = _SUGGESTIONS.get(handoff_type, {})
        return [
            CorrectionSuggestion(
                field=error.field,
                suggestion=table.get(error.field, f"Fix field {error.field} to satisfy the handoff requirements"),
                issue=error.message,
                priority=_PRIORITY[error.severity],
            )
            for error in errors
        ]

    # ===================================================================
    # BUSINESS RULES
    # ===================================================================

    def _content_rules(self, data: Dict[str, Any]) -> Tuple[List[ValidationIssue], List[str]]:
        issues: List[ValidationIssue] = []
        warnings: List[str] = []

        language = get_path(data, "content_package.content_metadata.language")
        if isinstance(language, str) and language and language.lower() not in self.limits.supported_languages:
            issues.append(ValidationIssue(
                field="content_package.content_metadata.language",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Unsupported language '{language}'",
                severity=Severity.MAJOR,
                current_value=language,
                expected_value=", ".join(self.limits.supported_languages),
            ))

        subject = get_path(data, "content_package.complete_content.subject")
        if isinstance(subject, str) and subject:
            if len(subject) < 10:
                warnings.append("Subject line is very short (< 10 characters)")
            elif len(subject) > 50:
                warnings.append("Subject line is very long (> 50 characters)")

        body = get_path(data, "content_package.complete_content.body")
        if isinstance(body, str) and body:
            if len(body) < 100:
                warnings.append("Email body is very short (< 100 characters)")
            declared = as_number(get_path(data, "content_package.content_metadata.word_count"))
            actual = len(body.split())
            if declared and actual and abs(declared - actual) > 0.5 * actual:
                warnings.append(f"Declared word_count {int(declared)} differs from body word count {actual}")

        return issues, warnings

    def _design_rules(self, data: Dict[str, Any]) -> Tuple[List[ValidationIssue], List[str]]:
        issues: List[ValidationIssue] = []
        warnings: List[str] = []
        limits = self.limits

        html = get_path(data, "email_package.html_content")
        mjml = get_path(data, "email_package.mjml_source")
        if isinstance(data.get("email_package"), dict) and not html and not mjml:
            issues.append(ValidationIssue(
                field="email_package.html_content",
                error_type=ErrorType.MISSING,
                message="Either html_content or mjml_source must be provided",
                severity=Severity.CRITICAL,
            ))

        if isinstance(html, str) and html:
            html_bytes = len(html.encode("utf-8"))
            if html_bytes > limits.max_file_size_bytes:
                issues.append(ValidationIssue(
                    field="email_package.html_content",
                    error_type=ErrorType.SIZE_LIMIT,
                    message=f"HTML size {html_bytes} bytes exceeds limit {limits.max_file_size_bytes}",
                    severity=Severity.CRITICAL,
                    current_value=html_bytes,
                    expected_value=limits.max_file_size_bytes,
                ))

        file_size = as_number(get_path(data, "rendering_metadata.file_size_bytes"))
        if file_size is not None and file_size > limits.max_file_size_bytes:
            issues.append(ValidationIssue(
                field="rendering_metadata.file_size_bytes",
                error_type=ErrorType.SIZE_LIMIT,
                message=f"File size {int(file_size)} bytes exceeds limit {limits.max_file_size_bytes}",
                severity=Severity.MAJOR,
                current_value=file_size,
                expected_value=limits.max_file_size_bytes,
            ))

        render_time = as_number(get_path(data, "rendering_metadata.render_time_ms"))
        if render_time is not None and render_time > limits.max_render_time_ms:
            issues.append(ValidationIssue(
                field="rendering_metadata.render_time_ms",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Render time {int(render_time)}ms exceeds {limits.max_render_time_ms}ms",
                severity=Severity.MINOR,
                current_value=render_time,
                expected_value=limits.max_render_time_ms,
            ))

        total_kb = as_number(get_path(data, "design_artifacts.performance_metrics.total_size_kb"))
        if total_kb is not None and total_kb > limits.max_design_total_size_kb:
            issues.append(ValidationIssue(
                field="design_artifacts.performance_metrics.total_size_kb",
                error_type=ErrorType.SIZE_LIMIT,
                message=f"Total design size {total_kb}KB exceeds {limits.max_design_total_size_kb}KB",
                severity=Severity.MAJOR,
                current_value=total_kb,
                expected_value=limits.max_design_total_size_kb,
            ))

        issues.extend(self._url_issues(get_path(data, "email_package.asset_urls"), "email_package.asset_urls"))

        if not get_path(data, "design_artifacts.accessibility_features"):
            warnings.append("No accessibility features declared")
        if isinstance(data.get("design_artifacts"), dict) and not get_path(data, "design_artifacts.dark_mode_support"):
            warnings.append("Dark mode is not supported")

        return issues, warnings

    def _quality_rules(self, data: Dict[str, Any]) -> Tuple[List[ValidationIssue], List[str]]:
        issues: List[ValidationIssue] = []
        warnings: List[str] = []
        limits = self.limits

        score = as_number(get_path(data, "quality_package.quality_score"))
        if score is not None and score < limits.min_quality_score:
            issues.append(ValidationIssue(
                field="quality_package.quality_score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Quality score {score} is below the minimum {limits.min_quality_score}",
                severity=Severity.CRITICAL,
                current_value=score,
                expected_value=limits.min_quality_score,
            ))
        elif score is not None and score < 85:
            warnings.append(f"Quality score below optimal: {score} (target 85+)")

        status = get_path(data, "quality_package.validation_status")
        if status == "failed":
            issues.append(ValidationIssue(
                field="quality_package.validation_status",
                error_type=ErrorType.INVALID_VALUE,
                message="Quality validation failed; the package cannot be delivered",
                severity=Severity.CRITICAL,
                current_value=status,
                expected_value="passed",
            ))
        elif status == "pending":
            issues.append(ValidationIssue(
                field="quality_package.validation_status",
                error_type=ErrorType.INVALID_VALUE,
                message="Quality validation has not completed",
                severity=Severity.MAJOR,
                current_value=status,
                expected_value="passed",
            ))

        if get_path(data, "test_results.html_validation.w3c_compliant") is False:
            issues.append(ValidationIssue(
                field="test_results.html_validation.w3c_compliant",
                error_type=ErrorType.INVALID_VALUE,
                message="HTML must be W3C compliant",
                severity=Severity.CRITICAL,
                current_value=False,
                expected_value=True,
            ))

        html_errors = get_path(data, "test_results.html_validation.errors")
        if isinstance(html_errors, list) and html_errors:
            warnings.append(f"HTML validation reported {len(html_errors)} error(s)")

        compatibility = as_number(get_path(data, "test_results.email_client_compatibility.compatibility_score"))
        if compatibility is not None and compatibility < limits.min_compatibility_score:
            issues.append(ValidationIssue(
                field="test_results.email_client_compatibility.compatibility_score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Compatibility {compatibility}% is below the required {limits.min_compatibility_score}%",
                severity=Severity.MAJOR,
                current_value=compatibility,
                expected_value=limits.min_compatibility_score,
            ))

        clients = get_path(data, "test_results.email_client_compatibility")
        if isinstance(clients, dict):
            unsupported = [
                name for name in EMAIL_CLIENTS
                if clients.get(name) is False
            ]
            if unsupported:
                warnings.append(f"Unsupported clients: {', '.join(unsupported)}")

        accessibility = as_number(get_path(data, "accessibility_report.score"))
        if accessibility is not None and accessibility < limits.min_accessibility_score:
            issues.append(ValidationIssue(
                field="accessibility_report.score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Accessibility score {accessibility} is below {limits.min_accessibility_score}",
                severity=Severity.MAJOR,
                current_value=accessibility,
                expected_value=limits.min_accessibility_score,
            ))

        if get_path(data, "accessibility_report.wcag_aa_compliant") is False:
            issues.append(ValidationIssue(
                field="accessibility_report.wcag_aa_compliant",
                error_type=ErrorType.INVALID_VALUE,
                message="WCAG AA compliance is required",
                severity=Severity.MAJOR,
                current_value=False,
                expected_value=True,
            ))

        spam = as_number(get_path(data, "spam_analysis.spam_score"))
        if spam is not None and spam > limits.max_spam_score:
            issues.append(ValidationIssue(
                field="spam_analysis.spam_score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Spam score {spam} exceeds {limits.max_spam_score}",
                severity=Severity.MAJOR,
                current_value=spam,
                expected_value=limits.max_spam_score,
            ))

        issues.extend(self._url_issues(
            get_path(data, "quality_package.optimized_assets"),
            "quality_package.optimized_assets",
        ))

        return issues, warnings

    def _delivery_rules(self, data: Dict[str, Any]) -> Tuple[List[ValidationIssue], List[str]]:
        issues: List[ValidationIssue] = []
        warnings: List[str] = []
        limits = self.limits
        ceiling_bytes = limits.max_package_size_kb * 1024

        actual_bytes = 0
        for key in ("html_email", "mjml_source"):
            value = data.get(key)
            if isinstance(value, str):
                actual_bytes += len(value.encode("utf-8"))

        assets = data.get("assets")
        if isinstance(assets, list):
            for index, asset in enumerate(assets):
                if not isinstance(asset, dict):
                    continue
                content = asset.get("content")
                content_bytes = len(content.encode("utf-8")) if isinstance(content, str) else 0
                declared = as_number(asset.get("size_bytes"))
                actual_bytes += max(content_bytes, int(declared or 0))
                if content_bytes and declared is not None and declared != content_bytes:
                    issues.append(ValidationIssue(
                        field=f"assets.{index}.size_bytes",
                        error_type=ErrorType.CONSISTENCY_ERROR,
                        message=f"Asset '{asset.get('filename')}' declares {int(declared)} bytes but holds {content_bytes}",
                        severity=Severity.MINOR,
                        current_value=declared,
                        expected_value=content_bytes,
                    ))
                if asset.get("optimized") is False:
                    warnings.append(f"Asset '{asset.get('filename')}' is not optimized")

        declared_kb = as_number(get_path(data, "metadata.total_size_kb"))
        actual_kb = round(actual_bytes / 1024, 2)
        if (declared_kb is not None and declared_kb > limits.max_package_size_kb) or actual_bytes > ceiling_bytes:
            issues.append(ValidationIssue(
                field="metadata.total_size_kb",
                error_type=ErrorType.SIZE_LIMIT,
                message=f"Package size exceeds {limits.max_package_size_kb}KB",
                severity=Severity.CRITICAL,
                current_value=max(declared_kb or 0, actual_kb),
                expected_value=limits.max_package_size_kb,
            ))

        score = as_number(get_path(data, "metadata.quality_score"))
        if score is not None and score < limits.min_quality_score:
            issues.append(ValidationIssue(
                field="metadata.quality_score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Quality score {score} is below the minimum {limits.min_quality_score}",
                severity=Severity.CRITICAL,
                current_value=score,
                expected_value=limits.min_quality_score,
            ))

        if not data.get("preview_files"):
            warnings.append("No preview files included")

        return issues, warnings

    def _url_issues(self, urls: Any, path: str) -> List[ValidationIssue]:
        if not isinstance(urls, list):
            return []
        return [
            ValidationIssue(
                field=f"{path}.{index}",
                error_type=ErrorType.FORMAT_ERROR,
                message=f"Malformed URL: {url!r}",
                severity=Severity.MAJOR,
                current_value=url if isinstance(url, str) else None,
                expected_value="absolute http(s) URL",
            )
            for index, url in enumerate(urls)
            if not is_well_formed_url(url)
        ]

