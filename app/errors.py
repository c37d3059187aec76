"""Domain errors and their JSON rendering."""

from flask import jsonify
from werkzeug.exceptions import HTTPException


class IntakeError(Exception):
    """Base class for errors surfaced to API callers as structured JSON."""

    code = "intake_error"
    status_code = 400

    def __init__(self, message: str = None, details: dict = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.details}


class ConfigurationError(IntakeError):
    """Schedule bounds that cannot be saved (one bound only, or close before open)."""

    code = "configuration_error"
    status_code = 422


class ValidationError(IntakeError):
    code = "validation_error"
    status_code = 422


class DuplicateSubmissionError(IntakeError):
    """The requester already has an order in the target batch."""

    code = "duplicate_submission"
    status_code = 409

    def __init__(self, user_id, batch_id):
        super().__init__(
            "You have already submitted a request for this distribution.",
            {"user_id": user_id, "batch_id": batch_id},
        )
        self.user_id = user_id
        self.batch_id = batch_id


class IntakeClosedError(IntakeError):
    code = "intake_closed"
    status_code = 403


class TransientStoreError(IntakeError):
    """The database could not be reached or rejected the write. Not retried here."""

    code = "store_unavailable"
    status_code = 503


def register_error_handlers(app) -> None:
    """Render domain errors and HTTP errors as JSON."""

    @app.errorhandler(IntakeError)
    def handle_intake_error(error):
        if error.status_code >= 500:
            app.logger.error("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        code = (error.name or "error").lower().replace(" ", "_")
        return jsonify(error=code, message=error.description, details={}), error.code
