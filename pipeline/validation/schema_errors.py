"""
Helpers that turn pydantic schema failures and raw package data into
ValidationIssue records.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from pipeline.models.core import ErrorType, Severity, ValidationIssue

# Fields whose schema failures always block the handoff outright
CRITICAL_FIELDS = frozenset({"trace_id", "timestamp", "quality_score", "html_content"})

_INVALID_VALUE_TYPES = frozenset({
    "string_too_short",
    "too_short",
    "greater_than",
    "greater_than_equal",
    "less_than",
    "less_than_equal",
    "literal_error",
    "enum",
    "value_error",
})

_SIZE_LIMIT_TYPES = frozenset({"string_too_long", "too_long"})

_SEVERITY_RANK = {Severity.MINOR: 0, Severity.MAJOR: 1, Severity.CRITICAL: 2}


def field_path(loc: Iterable[Any]) -> str:
    """Join a pydantic location tuple into a dotted field path."""
    return ".".join(str(part) for part in loc)


def map_error_type(pydantic_type: str) -> ErrorType:
    if pydantic_type == "missing":
        return ErrorType.MISSING
    if pydantic_type in _INVALID_VALUE_TYPES:
        return ErrorType.INVALID_VALUE
    if pydantic_type in _SIZE_LIMIT_TYPES:
        return ErrorType.SIZE_LIMIT
    return ErrorType.FORMAT_ERROR


def determine_severity(path: str, error_type: ErrorType) -> Severity:
    leaf = path.rsplit(".", 1)[-1]
    if leaf in CRITICAL_FIELDS:
        return Severity.CRITICAL
    if error_type in (ErrorType.FORMAT_ERROR, ErrorType.MISSING):
        return Severity.MAJOR
    return Severity.MINOR


def _scalar(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return None


def issues_from_pydantic(exc: PydanticValidationError, prefix: str = "") -> List[ValidationIssue]:
    """Convert every pydantic error into a ValidationIssue (no short-circuit)."""
    issues: List[ValidationIssue] = []
    for err in exc.errors(include_url=False):
        path = field_path(err["loc"]) or "root"
        if prefix:
            path = f"{prefix}.{path}" if path != "root" else prefix
        error_type = map_error_type(err["type"])
        ctx = err.get("ctx") or {}
        expected = next(
            (ctx[key] for key in ("min_length", "max_length", "ge", "gt", "le", "lt", "expected") if key in ctx),
            None,
        )
        issues.append(ValidationIssue(
            field=path,
            error_type=error_type,
            message=err["msg"],
            severity=determine_severity(path, error_type),
            current_value=None if error_type == ErrorType.MISSING else _scalar(err.get("input")),
            expected_value=_scalar(expected),
        ))
    return issues


def merge_issues(issues: Iterable[ValidationIssue]) -> Tuple[ValidationIssue, ...]:
    """
    Collapse duplicate (field, error_type) pairs, keeping the most severe one.

    Order of first appearance is preserved so results stay deterministic.
    """
    merged: Dict[Tuple[str, ErrorType], ValidationIssue] = {}
    for issue in issues:
        key = (issue.field, issue.error_type)
        existing = merged.get(key)
        if existing is None:
            merged[key] = issue
        elif _SEVERITY_RANK[issue.severity] > _SEVERITY_RANK[existing.severity]:
            merged[key] = issue
    return tuple(merged.values())


def as_mapping(package: Any) -> Dict[str, Any]:
    """Return a plain JSON-like dict for a package model or mapping (empty dict otherwise)."""
    data = to_jsonable_python(package, fallback=str)
    return data if isinstance(data, dict) else {}


def get_path(data: Any, path: str) -> Any:
    """Safe dotted lookup into nested dicts (numeric segments index lists); None when a segment is missing."""
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


def as_number(value: Any) -> Optional[float]:
    """Numeric value or None (booleans are not numbers here)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value
