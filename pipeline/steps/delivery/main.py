"""
Delivery Stage - step 4 of 4

Builds the final DeliveryPackage and writes its files to the artifact store.
"""

from typing import Dict, Optional, Tuple

from pipeline.core.runner import BaseHandoffStage
from pipeline.models.core import Stage, StageContext
from pipeline.models.packages import DeliveryPackage, QualityPackage


class DeliveryStage(BaseHandoffStage):
    """
    Step 4: Assemble the delivery package.

    Artifacts are written under delivery/: email.html, email.mjml,
    README.md, IMPLEMENTATION.md, assets/<file> and previews/<file>.
    """

    stage = Stage.DELIVERY
    package_model = DeliveryPackage

    async def _validate_input(self, context: StageContext) -> Optional[str]:
        if not isinstance(context.previous_package, QualityPackage):
            return "delivery stage requires a validated quality package"
        return None

    def artifacts(self, package: DeliveryPackage) -> Dict[str, Tuple[bytes, str]]:
        files = {
            "delivery/email.html": (package.html_email.encode("utf-8"), "text/html"),
            "delivery/README.md": (package.documentation.readme.encode("utf-8"), "text/markdown"),
            "delivery/IMPLEMENTATION.md": (
                package.documentation.implementation_guide.encode("utf-8"),
                "text/markdown",
            ),
        }
        if package.mjml_source:
            files["delivery/email.mjml"] = (package.mjml_source.encode("utf-8"), "text/plain")
        for asset in package.assets:
            files[f"delivery/assets/{asset.filename}"] = (asset.content.encode("utf-8"), asset.mime_type)
        for preview in package.preview_files:
            files[f"delivery/previews/{preview.filename}"] = (preview.content.encode("utf-8"), "text/html")
        return files
