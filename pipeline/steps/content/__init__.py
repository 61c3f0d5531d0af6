"""
Content Stage

Produces subject, preheader, body and CTA together with the design
requirements and campaign context for the design stage.
"""

from .main import ContentStage

__all__ = ["ContentStage"]
