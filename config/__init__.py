"""
Configuration module for the application.
Exports the settings instance and read-only handoff limits.
"""

from config.settings import HandoffLimits, get_settings, settings

__all__ = ["settings", "get_settings", "HandoffLimits"]
