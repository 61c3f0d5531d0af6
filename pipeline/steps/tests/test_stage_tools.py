"""
Tests for the four stage tools and their prompts.

Run with:
    pytest pipeline/steps/tests/test_stage_tools.py -v
"""

import pytest

from pipeline.core.exceptions import ExternalServiceError, StepExecutionError
from pipeline.models.core import Stage, StageContext, StageOutput
from pipeline.models.packages import ContentPackage, DeliveryPackage, DesignPackage, QualityPackage
from pipeline.steps.content import prompts as content_prompts
from pipeline.steps.content.main import ContentStage
from pipeline.steps.delivery import prompts as delivery_prompts
from pipeline.steps.delivery.main import DeliveryStage
from pipeline.steps.design import prompts as design_prompts
from pipeline.steps.design.main import DesignStage
from pipeline.steps.quality.main import QualityStage
from tests.factories import (
    BRIEF,
    FakeProducer,
    content_package,
    delivery_package,
    design_package,
    quality_package,
)


def _context(stage, previous=None, brief=BRIEF):
    return StageContext(
        campaign_id="c-1",
        trace_id="abc-123",
        stage=stage,
        brief=dict(brief),
        previous_package=previous,
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_content_stage_wraps_raw_candidate(validator):
    tool = ContentStage(FakeProducer(content_package()), validator)

    output = await tool.execute(_context(Stage.CONTENT), timeout_seconds=1.0)

    assert isinstance(output, StageOutput)
    assert not output.degraded
    assert tool.validate(output.candidate).is_valid
    assert tool.name == "content_stage"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_content_stage_requires_topic(validator):
    tool = ContentStage(FakeProducer(content_package()), validator)

    with pytest.raises(StepExecutionError):
        await tool.execute(_context(Stage.CONTENT, brief={"language": "en"}), timeout_seconds=1.0)


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize("tool_class, stage, wrong_previous", [
    (DesignStage, Stage.DESIGN, None),
    (QualityStage, Stage.QUALITY, ContentPackage.model_validate(content_package())),
    (DeliveryStage, Stage.DELIVERY, DesignPackage.model_validate(design_package())),
])
async def test_stages_require_previous_package(validator, tool_class, stage, wrong_previous):
    tool = tool_class(FakeProducer({}), validator)

    with pytest.raises(StepExecutionError):
        await tool.execute(_context(stage, previous=wrong_previous), timeout_seconds=1.0)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_producer_error_becomes_external_service_error(validator):
    previous = ContentPackage.model_validate(content_package())
    tool = DesignStage(FakeProducer(RuntimeError("rate limited")), validator)

    with pytest.raises(ExternalServiceError) as exc_info:
        await tool.execute(_context(Stage.DESIGN, previous=previous), timeout_seconds=1.0)

    assert "rate limited" in str(exc_info.value)


@pytest.mark.unit
def test_design_artifacts(validator):
    tool = DesignStage(FakeProducer({}), validator)
    package = DesignPackage.model_validate(design_package())

    files = tool.artifacts(package)

    assert set(files) == {"design/email.html", "design/email.mjml", "design/inline.css"}
    data, content_type = files["design/email.html"]
    assert content_type == "text/html"
    assert data.decode("utf-8") == package.email_package.html_content


@pytest.mark.unit
def test_delivery_artifacts(validator):
    tool = DeliveryStage(FakeProducer({}), validator)
    package = DeliveryPackage.model_validate(delivery_package())

    files = tool.artifacts(package)

    assert "delivery/assets/styles.css" in files
    assert "delivery/previews/desktop.html" in files
    assert files["delivery/README.md"][1] == "text/markdown"


@pytest.mark.unit
def test_quality_stage_has_no_artifacts(validator):
    tool = QualityStage(FakeProducer({}), validator)

    assert tool.artifacts(QualityPackage.model_validate(quality_package())) == {}


@pytest.mark.unit
def test_prompts_include_context():
    content = ContentPackage.model_validate(content_package())
    quality = QualityPackage.model_validate(quality_package())

    content_prompt = content_prompts.create_user_prompt(_context(Stage.CONTENT))
    design_prompt = design_prompts.create_user_prompt(_context(Stage.DESIGN, previous=content))
    delivery_prompt = delivery_prompts.create_user_prompt(_context(Stage.DELIVERY, previous=quality))

    assert "Summer flights to Sochi" in content_prompt
    assert "abc-123" in design_prompt
    assert "Summer flights to Sochi from $99" in design_prompt
    assert "quality_score" in delivery_prompt
