"""
Design Stage - step 2 of 4

Builds a DesignPackage on top of the validated ContentPackage and stores
the rendered HTML/MJML once the package passes validation.
"""

from typing import Dict, Optional, Tuple

from pipeline.core.runner import BaseHandoffStage
from pipeline.models.core import Stage, StageContext
from pipeline.models.packages import ContentPackage, DesignPackage


class DesignStage(BaseHandoffStage):
    """
    Step 2: Design the email template.

    Requires a validated ContentPackage as the previous package.
    Artifacts: design/email.html, design/email.mjml, design/inline.css
    """

    stage = Stage.DESIGN
    package_model = DesignPackage

    async def _validate_input(self, context: StageContext) -> Optional[str]:
        if not isinstance(context.previous_package, ContentPackage):
            return "design stage requires a validated content package"
        return None

    def artifacts(self, package: DesignPackage) -> Dict[str, Tuple[bytes, str]]:
        email = package.email_package
        files = {}
        if email.html_content:
            files["design/email.html"] = (email.html_content.encode("utf-8"), "text/html")
        if email.mjml_source:
            files["design/email.mjml"] = (email.mjml_source.encode("utf-8"), "text/plain")
        if email.inline_css:
            files["design/inline.css"] = (email.inline_css.encode("utf-8"), "text/css")
        return files
