"""
Services module for external integrations: artifact storage and the
pydantic-ai producer/corrector adapters.
"""

from services.artifact_store import ArtifactStore, InMemoryArtifactStore

__all__ = ["ArtifactStore", "InMemoryArtifactStore"]
