"""
Core pipeline infrastructure.

This package contains the core components of the pipeline:
- BaseHandoffStage: abstract base class for the stage tools
- PipelineOrchestrator: per-campaign state machine
- CorrectionLoop: bounded AI correction
- PipelineSnapshot: read-only campaign view

Data models are in pipeline.models
Custom exceptions are in pipeline.core.exceptions
"""

from pipeline.core.correction import AICorrector, CorrectionLoop
from pipeline.core.runner import BaseHandoffStage, GenerativeProducer, PipelineOrchestrator
from pipeline.core.state import PipelineSnapshot, TRANSITIONS, can_transition

__all__ = [
    "AICorrector",
    "BaseHandoffStage",
    "CorrectionLoop",
    "GenerativeProducer",
    "PipelineOrchestrator",
    "PipelineSnapshot",
    "TRANSITIONS",
    "can_transition",
]
