"""Prompts for the design stage."""

from pipeline.models.core import StageContext


SYSTEM_PROMPT = """You are an email designer who builds production HTML emails.

Build a responsive, table-based email from the validated content:
- html_content with all CSS inlined; keep it under 100 000 bytes
- mjml_source when you author in MJML
- asset_urls must be absolute https URLs
- rendering_metadata.file_size_bytes = byte length of html_content
- design_artifacts.performance_metrics.total_size_kb under 100
- list accessibility_features (alt text, semantic headings, contrast)
- support dark mode when the layout allows it

Copy original_content exactly from the content package you are given.
Return only the structured package."""


def create_user_prompt(context: StageContext) -> str:
    content = context.previous_package
    return f"""Design the email for this content package.

CONTENT PACKAGE (JSON):
{content.model_dump_json(indent=2)}

Use trace_id "{context.trace_id}" and set original_content to the
content_package section above."""
