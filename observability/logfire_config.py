"""
Logfire configuration and initialization.

Logfire provides structured logging and tracing for every handoff:
stage spans, validation outcomes, correction attempts and quality gates.

Environment Variables:
    LOGFIRE_TOKEN: Logfire project token (required in production)
    ENVIRONMENT: deployment environment (development, staging, production)
"""
import os
from typing import Optional

import logfire


class LogfireConfig:
    """
    Logfire configuration singleton.

    Ensures Logfire is initialized only once per process. Outside production
    a missing token keeps logs local instead of failing startup.
    """

    _initialized = False

    @classmethod
    def initialize(cls, token: Optional[str] = None, environment: Optional[str] = None) -> None:
        """
        Initialize Logfire with project token.

        Args:
            token: Logfire project token (or set LOGFIRE_TOKEN env var)
            environment: Deployment environment (or set ENVIRONMENT env var)

        Raises:
            ValueError: If running in production without a token
        """
        if cls._initialized:
            return

        token = token or os.getenv("LOGFIRE_TOKEN")
        environment = environment or os.getenv("ENVIRONMENT", "development")

        if not token and environment.lower() == "production":
            raise ValueError("LOGFIRE_TOKEN environment variable or token argument must be provided in production.")

        logfire.configure(
            token=token or None,
            service_name="email-handoff-pipeline",
            environment=environment,
            send_to_logfire=bool(token),
        )
        logfire.instrument_pydantic_ai()

        cls._initialized = True

    @classmethod
    def is_initialized(cls) -> bool:
        """
        Check if Logfire has been initialized.

        Returns:
            True if initialized, False otherwise
        """
        return cls._initialized
