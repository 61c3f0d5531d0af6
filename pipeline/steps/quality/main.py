"""
Quality Stage - step 3 of 4

Produces a QualityPackage for the validated DesignPackage. The orchestrator
scores it and applies the approval gate before delivery can start.
"""

from typing import Optional

from pipeline.core.runner import BaseHandoffStage
from pipeline.models.core import Stage, StageContext
from pipeline.models.packages import DesignPackage, QualityPackage


class QualityStage(BaseHandoffStage):
    """Step 3: Test the email template."""

    stage = Stage.QUALITY
    package_model = QualityPackage

    async def _validate_input(self, context: StageContext) -> Optional[str]:
        if not isinstance(context.previous_package, DesignPackage):
            return "quality stage requires a validated design package"
        return None
