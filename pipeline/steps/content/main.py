"""
Content Stage - step 1 of 4

Asks the producer for a ContentPackage from the campaign brief.
"""

from typing import Optional

from pipeline.core.runner import BaseHandoffStage
from pipeline.models.core import Stage, StageContext
from pipeline.models.packages import ContentPackage


class ContentStage(BaseHandoffStage):
    """
    Step 1: Generate campaign copy.

    Requires a brief with at least a topic; there is no previous package.
    """

    stage = Stage.CONTENT
    package_model = ContentPackage

    async def _validate_input(self, context: StageContext) -> Optional[str]:
        if not context.brief:
            return "campaign brief is empty"
        if not str(context.brief.get("topic") or "").strip():
            return "campaign brief has no topic"
        if context.previous_package is not None:
            return "content stage must start a fresh chain"
        return None
