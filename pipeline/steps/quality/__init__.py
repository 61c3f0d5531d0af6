"""
Quality Stage

Tests the designed email and reports quality, compatibility, accessibility,
performance and spam results.
"""

from .main import QualityStage

__all__ = ["QualityStage"]
