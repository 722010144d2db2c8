"""
Error taxonomy shared by the store, the engines and the API layer.

Each error carries the HTTP status the transport facade renders it with:

    NotFoundError            404  referenced id is absent
    InvalidInputError        400  malformed request (empty note, bad page size, ...)
    ConflictError            409  caller acted on a stale view (reorder, stage change)
    ValidationFailedError    422  assessment response failed its schema
    TransientTransportError  503  simulated network failure, always safe to retry

Only TransientTransportError is meant to be retried. The others are terminal
for the call and reach the caller unchanged.
"""

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from talentflow.services.assessment_schema import FieldError


class TalentFlowError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundError(TalentFlowError):
    status_code = 404

    def __init__(self, collection: str, record_id: str, message: Optional[str] = None):
        super().__init__(message or f"{collection} '{record_id}' not found")
        self.collection = collection
        self.record_id = record_id


class InvalidInputError(TalentFlowError):
    status_code = 400


class ConflictError(TalentFlowError):
    status_code = 409


class ValidationFailedError(TalentFlowError):
    """Raised when an assessment submission fails validation.

    Carries every (question_id, message) pair, not just the first one.
    """

    status_code = 422

    def __init__(self, errors: List["FieldError"], message: Optional[str] = None):
        super().__init__(message or f"{len(errors)} question(s) failed validation")
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "errors": [
                {"questionId": e.question_id, "message": e.message} for e in self.errors
            ],
        }


class TransientTransportError(TalentFlowError):
    status_code = 503

    def to_dict(self) -> dict:
        return {"error": self.message, "transient": True}
