"""
Handoff validation.

HandoffValidator checks each stage's output before it crosses to the next
stage; schema_errors maps pydantic failures into ValidationIssue records.
"""

from pipeline.validation.handoff_validator import HandoffValidator, is_well_formed_url

__all__ = [
    "HandoffValidator",
    "is_well_formed_url",
]
