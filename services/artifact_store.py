"""
Artifact storage for validated design and delivery files.

The orchestrator only depends on the ArtifactStore protocol; the in-memory
store backs tests and local runs, SupabaseArtifactStore (services.supabase)
backs deployments.
"""

import asyncio
from typing import Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class ArtifactStore(Protocol):
    """put(path, bytes) / get(path) storage for pipeline artifacts."""

    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        ...

    async def get(self, path: str) -> Optional[bytes]:
        ...


class InMemoryArtifactStore:
    """Process-local store keyed by path."""

    def __init__(self):
        self._objects: Dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        async with self._lock:
            self._objects[path] = bytes(data)
        return path

    async def get(self, path: str) -> Optional[bytes]:
        return self._objects.get(path)

    def paths(self, prefix: str = "") -> List[str]:
        return sorted(p for p in self._objects if p.startswith(prefix))
