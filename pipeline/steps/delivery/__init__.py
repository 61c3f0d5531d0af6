"""
Delivery Stage

Packages the approved email with assets, documentation and previews.
"""

from .main import DeliveryStage

__all__ = ["DeliveryStage"]
