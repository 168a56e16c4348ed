"""Exception hierarchy for the comparison pipeline.

Only configuration and upstream transport failures are raised. Content
failures (unparseable model output) are recovered inside the agents and
never surface here.
"""

from __future__ import annotations


class ImpactCompareError(Exception):
    """Base class for every error the pipeline raises to its caller."""

    status_code: int = 500


class ConfigurationError(ImpactCompareError):
    """Missing or invalid process-wide configuration (e.g. no API key)."""


class UpstreamError(ImpactCompareError):
    """A backend call did not complete successfully.

    ``backend`` is ``"vision"`` or ``"reasoning"``; ``variant`` names the
    design variant being extracted (``"A"``/``"B"``) and stays ``None`` for
    the reasoning call.  ``backend_status`` is the HTTP status the backend
    returned, when there was one; ``status_code`` is what the HTTP layer
    answers with.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str,
        variant: str | None = None,
        backend_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.variant = variant
        self.backend_status = backend_status

    def __str__(self) -> str:
        where = f"{self.backend} backend"
        if self.variant:
            where += f" (variant {self.variant})"
        if self.backend_status is not None:
            where += f" [HTTP {self.backend_status}]"
        return f"{where}: {self.args[0]}"


class RateLimitedError(UpstreamError):
    """The backend rejected the call with a rate limit (HTTP 429)."""

    status_code = 429


class QuotaExhaustedError(UpstreamError):
    """The backend account has run out of credits or quota (HTTP 402)."""

    status_code = 402


class UpstreamTimeoutError(UpstreamError):
    """The backend did not answer within the per-call deadline."""

    status_code = 504
