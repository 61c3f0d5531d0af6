"""Prompts for the quality stage."""

from pipeline.models.core import StageContext


SYSTEM_PROMPT = """You are an email QA engineer.

Review the designed email and report:
- quality_package: validated_html (the HTML after fixes), quality_score 0-100,
  validation_status passed | failed | pending, optimized_assets (https URLs)
- test_results: W3C HTML validation, CSS issues, and support in gmail,
  outlook, apple_mail and yahoo_mail with a compatibility_score 0-100
- accessibility_report: WCAG AA compliance, issues and a score 0-100
- performance_analysis: load_time_score, file_size_score, optimization_score
- spam_analysis: spam_score (0 is clean), risk factors and recommendations

Be strict: a score below 70 means the email must not ship.
Copy original_content unchanged from the design package.
Return only the structured package."""


def create_user_prompt(context: StageContext) -> str:
    design = context.previous_package
    return f"""Run quality checks on this design package.

DESIGN PACKAGE (JSON):
{design.model_dump_json(indent=2)}

Use trace_id "{context.trace_id}"."""
