"""
Backend-agnostic mapping from an ``Outcome`` to an HTTP status and body.
"""

from typing import Any, Callable, Optional, Tuple

from shared.errors import (
    ErrorResponse,
    INTERNAL_ERROR_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    NOT_FOUND_MESSAGE,
)

from .outcome import Outcome, Success

SuccessShape = Callable[[Any], Any]

_GENERIC_MESSAGES = {
    400: INVALID_REQUEST_MESSAGE,
    404: NOT_FOUND_MESSAGE,
    500: INTERNAL_ERROR_MESSAGE,
}


def unwrap(field: str, default: Any = None) -> SuccessShape:
    """Shape that lifts a single field out of the payload envelope."""

    def _shape(payload: Any) -> Any:
        if not isinstance(payload, dict):
            return default
        return payload.get(field, default)

    _shape.__name__ = f"unwrap_{field}"
    return _shape


def error_body(status_code: int) -> dict:
    """Fixed generic body for any error status the gateway emits."""
    message = _GENERIC_MESSAGES.get(status_code, INTERNAL_ERROR_MESSAGE)
    return ErrorResponse(error=message).model_dump()


def translate(outcome: Outcome, shape: Optional[SuccessShape] = None) -> Tuple[int, Any]:
    """Map an outcome to ``(status_code, body)``.

    Failures always become ``500`` with the generic body; the failure reason
    is deliberately dropped here.
    """
    if isinstance(outcome, Success):
        body = shape(outcome.payload) if shape is not None else outcome.payload
        return 200, body
    return 500, error_body(500)
