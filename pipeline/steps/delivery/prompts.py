"""Prompts for the delivery stage."""

from pipeline.models.core import StageContext


SYSTEM_PROMPT = """You are a release engineer preparing an email for handoff to the sending platform.

Assemble the delivery package:
- html_email: the validated HTML from the quality package, unchanged
- assets: every file with its content, exact size_bytes and mime_type
- metadata.quality_score: copy quality_package.quality_score exactly
- metadata.total_size_kb: total size of html, mjml and assets, under 600
- documentation: readme and implementation_guide are required
- preview_files: desktop, mobile, dark_mode and plain_text previews

Return only the structured package."""


def create_user_prompt(context: StageContext) -> str:
    quality = context.previous_package
    return f"""Build the delivery package for this quality-approved email.

QUALITY PACKAGE (JSON):
{quality.model_dump_json(indent=2)}

Use trace_id "{context.trace_id}"."""
