import logging
import uuid

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from models import storage
from services.errors import ServiceError, InternalError

logger = logging.getLogger(__name__)

INTERNAL_MESSAGE = "Erro interno no servidor"


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def internal_error_response(err: Exception):
    """
    Log the failure with a fresh reference and hand only that reference to the client.
    """
    reference = uuid.uuid4().hex
    logger.error("Internal error (reference %s): %s", reference, err, exc_info=err)
    details = {"reference": reference}
    if current_app and current_app.debug:
        details.update({"type": err.__class__.__name__, "message": str(err)})
    return error_response("INTERNAL_ERROR", INTERNAL_MESSAGE, 500, details=details)


def register_error_handlers(app):
    # Session/credential failures: status and code come from the exception class
    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        if isinstance(err, InternalError):
            return internal_error_response(err)
        return error_response(err.error_code, err.message, err.status_code)

    # 400 Bad Request (generic)
    @app.errorhandler(400)
    def bad_request(e):
        message = getattr(e, "description", "Bad request")
        return error_response("BAD_REQUEST", message, 400)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        message = getattr(e, "description", None) or "Resource not found"
        return error_response("NOT_FOUND", message, 404)

    # 409 Conflict
    @app.errorhandler(409)
    def conflict(e):
        message = getattr(e, "description", "Conflict")
        return error_response("CONFLICT", message, 409)

    # 422 Unprocessable Entity (validation)
    @app.errorhandler(422)
    def unprocessable(e):
        message = getattr(e, "description", "Unprocessable entity")
        return error_response("VALIDATION_ERROR", message, 422)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        storage.rollback()
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        logger.info("Integrity error: %s", message)
        if "unique" in lower_msg or "duplicate" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response("BAD_REQUEST", err.description, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        return internal_error_response(err)
