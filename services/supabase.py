"""
Supabase Storage backend for pipeline artifacts.

The client is a lazily created singleton using the service role key.
Storage calls are synchronous in supabase-py, so they run in a worker
thread to keep the event loop free for other campaigns.
"""

import asyncio
from typing import Optional

import logfire
from supabase import create_client, Client

from config import settings

# Global singleton instance
_supabase_client: Client | None = None


def get_supabase_client() -> Client:
    """
    Get or create the Supabase client singleton.

    Raises:
        ValueError: If Supabase configuration is missing
    """
    global _supabase_client

    if _supabase_client is None:
        if not settings.supabase_url:
            raise ValueError("SUPABASE_URL is not configured")
        if not settings.supabase_service_role_key:
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY is not configured")

        try:
            _supabase_client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key
            )
        except Exception as e:
            logfire.error(
                "Failed to initialize Supabase client",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    return _supabase_client


class SupabaseArtifactStore:
    """ArtifactStore backed by a Supabase Storage bucket."""

    def __init__(self, client: Optional[Client] = None, bucket: Optional[str] = None):
        self._client = client
        self.bucket = bucket or settings.artifact_bucket

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        def _upload():
            return self.client.storage.from_(self.bucket).upload(
                path,
                data,
                {"content-type": content_type, "upsert": "true"},
            )

        await asyncio.to_thread(_upload)
        logfire.info("Artifact uploaded", bucket=self.bucket, path=path, size_bytes=len(data))
        return path

    async def get(self, path: str) -> Optional[bytes]:
        def _download():
            return self.client.storage.from_(self.bucket).download(path)

        return await asyncio.to_thread(_download)
