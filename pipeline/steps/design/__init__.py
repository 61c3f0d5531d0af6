"""
Design Stage

Renders validated content into an email template with rendering metadata.
"""

from .main import DesignStage

__all__ = ["DesignStage"]
