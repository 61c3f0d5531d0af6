"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logfire

from config import settings
from observability.logfire_config import LogfireConfig
from pipeline import create_handoff_pipeline
from api.routes import campaign_router


def create_artifact_store():
    """Supabase Storage when configured, otherwise an in-memory store."""
    if settings.supabase_url and settings.supabase_service_role_key:
        from services.supabase import SupabaseArtifactStore

        return SupabaseArtifactStore(bucket=settings.artifact_bucket)

    from services.artifact_store import InMemoryArtifactStore

    logfire.warning(
        "Supabase storage not configured, artifacts are kept in memory",
        hint="Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY in .env file",
    )
    return InMemoryArtifactStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Initialize Logfire first so we can use structured logging
    LogfireConfig.initialize(token=settings.logfire_token)

    logfire.info(
        "Starting Email Handoff Pipeline API",
        environment=settings.environment,
        debug=settings.debug,
    )

    app.state.orchestrator = create_handoff_pipeline(artifact_store=create_artifact_store())

    logfire.info(
        "Pipeline initialised",
        producer_model=settings.producer_model,
        corrector_model=settings.corrector_model,
        max_correction_attempts=settings.max_correction_attempts,
    )

    yield

    logfire.info("Shutting down Email Handoff Pipeline API")


# Initialize FastAPI app
app = FastAPI(
    title="Email Handoff Pipeline API",
    description="Validated content -> design -> quality -> delivery handoffs for marketing emails",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    pipeline_ready = getattr(app.state, "orchestrator", None) is not None

    return {
        "status": "healthy" if pipeline_ready else "starting",
        "service": "email-handoff-pipeline",
        "version": "1.0.0",
        "environment": settings.environment,
    }


# ============================================================================
# API Routers
# ============================================================================

# Campaign pipeline endpoints
app.include_router(campaign_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
