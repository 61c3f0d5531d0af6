"""
Bounded AI correction loop.

When a candidate package fails validation with only non-critical errors,
the loop hands it to an AICorrector together with the errors and the
correction suggestions, re-validates whatever comes back, and stops after
max_attempts passes.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol, Sequence, Union, runtime_checkable

import logfire

from pipeline.core.exceptions import CorrectionExhaustedError
from pipeline.models.core import (
    Corrected,
    CorrectionResponse,
    CorrectionSuggestion,
    Exhausted,
    Stage,
    ValidationIssue,
    ValidationResult,
)

ValidateFn = Callable[[Any], ValidationResult]


@runtime_checkable
class AICorrector(Protocol):
    """Anything that can propose a fixed version of an invalid package."""

    async def correct(
        self,
        invalid_package: Any,
        errors: Sequence[ValidationIssue],
        suggestions: Sequence[CorrectionSuggestion],
    ) -> CorrectionResponse:
        ...


class CorrectionLoop:
    """
    Runs at most max_attempts correction passes for one candidate.

    The loop holds no per-campaign state, so a single instance is shared by
    every campaign the orchestrator runs.
    """

    def __init__(
        self,
        corrector: Optional[AICorrector],
        max_attempts: int = 2,
        timeout_seconds: float = 30.0,
    ):
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        self.corrector = corrector
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds

    async def run(
        self,
        stage: Stage,
        candidate: Any,
        initial_result: ValidationResult,
        validate: ValidateFn,
    ) -> Union[Corrected, Exhausted]:
        """
        Correct candidate until it validates or attempts run out.

        Args:
            stage: Stage that produced the candidate (for logs/errors)
            candidate: Raw package that failed validation
            initial_result: The failed ValidationResult for candidate
            validate: Validation function for this stage

        Returns:
            Corrected with the valid result, or Exhausted whose error is a
            CorrectionExhaustedError carrying the errors left after the
            last attempt
        """
        stage = Stage(stage)
        current = candidate
        result = initial_result
        attempts = 0
        applied: list = []

        if self.corrector is None:
            return self._exhausted(stage, result, attempts)

        while attempts < self.max_attempts:
            attempts += 1
            with logfire.span(
                "pipeline.correction_attempt",
                stage=stage.value,
                attempt=attempts,
                error_count=len(result.errors),
            ):
                try:
                    response = await asyncio.wait_for(
                        self.corrector.correct(current, result.errors, result.correction_suggestions),
                        timeout=self.timeout_seconds,
                    )
                except asyncio.TimeoutError:
                    logfire.warning(
                        "Corrector timed out",
                        stage=stage.value,
                        attempt=attempts,
                        timeout=self.timeout_seconds,
                    )
                    continue
                except Exception as e:
                    logfire.warning(
                        "Corrector call failed",
                        stage=stage.value,
                        attempt=attempts,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    continue

                if not response.success or response.corrected_data is None:
                    logfire.info(
                        "Corrector returned no correction",
                        stage=stage.value,
                        attempt=attempts,
                    )
                    continue

                current = response.corrected_data
                applied.extend(response.corrections)
                result = validate(current)

                logfire.info(
                    "Correction attempt validated",
                    stage=stage.value,
                    attempt=attempts,
                    is_valid=result.is_valid,
                    error_count=len(result.errors),
                )

                if result.is_valid:
                    return Corrected(result=result, attempts=attempts, corrections=tuple(applied))

                # A critical error introduced by the corrector is not worth another pass
                if result.has_critical:
                    break

        return self._exhausted(stage, result, attempts)

    @staticmethod
    def _exhausted(stage: Stage, result: ValidationResult, attempts: int) -> Exhausted:
        error = CorrectionExhaustedError(result.errors, attempts, stage=stage.value)
        logfire.warning(
            "Correction exhausted",
            stage=stage.value,
            attempts=attempts,
            error_count=len(result.errors),
        )
        return Exhausted(error=error, attempts=attempts)
