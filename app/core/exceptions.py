"""Exceptions surfaced by the recommendation API.

Each exception carries the HTTP status it maps to and optional details
for operators. Rendering happens in the handlers registered by
``app.main``.
"""

from typing import Any, Dict, Optional


class RecommendationError(Exception):
    """Base exception for recommendation errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class InvalidRecommendationRequest(RecommendationError):
    """Raised when a request names an unknown type or misses a required parameter."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, status_code=400, details=details)


class RecommendationServiceError(RecommendationError):
    """Raised when computing recommendations fails unexpectedly."""

    def __init__(self, kind: str, error: Exception):
        super().__init__(
            message="Failed to fetch recommendations",
            status_code=500,
            details={
                "type": kind,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
