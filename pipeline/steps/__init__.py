"""Pipeline steps package.

This package contains one stage tool per handoff in the campaign pipeline:
- content: Produces copy, content metadata and design requirements
- design: Turns validated content into an email template (HTML/MJML)
- quality: Tests the template and reports quality, accessibility and spam scores
- delivery: Packages the approved email, assets and documentation
"""
