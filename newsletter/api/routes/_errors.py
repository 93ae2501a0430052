from typing import NoReturn

from fastapi import HTTPException, status
from pydantic import BaseModel

from newsletter.core.entities import ErrorDetail, Outcome

STATUS_BY_OUTCOME = {
    Outcome.INVALID: status.HTTP_400_BAD_REQUEST,
    Outcome.UNKNOWN_TOKEN: status.HTTP_401_UNAUTHORIZED,
    Outcome.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str
    code: str | None = None


def raise_for_outcome(outcome: Outcome, errors: list[ErrorDetail], fallback: str) -> NoReturn:
    """Translate a failed component outcome into an HTTPException."""
    error = errors[0] if errors else None
    if outcome is Outcome.UNEXPECTED or error is None:
        # Internal details stay in the server log
        detail = fallback
    else:
        detail = error.message
    raise HTTPException(
        status_code=STATUS_BY_OUTCOME.get(outcome, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=detail,
    )
