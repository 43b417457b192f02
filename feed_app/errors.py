"""Errors raised by the service layer.

Each error carries the HTTP status it should be answered with. The handlers
registered by :func:`register_error_handlers` turn them into a JSON body of
the form ``{"message": ..., "data": ...}``.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message=None, data=None, status_code=None):
        self.message = message or self.default_message
        self.data = data
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self):
        payload = {"message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


class ValidationFailed(ApiError):
    status_code = 422
    default_message = "Validation failed, entered data is incorrect."


class NotFound(ApiError):
    status_code = 404
    default_message = "Could not find resource."


class NotAuthorized(ApiError):
    status_code = 403
    default_message = "Not authorized!"


class MediaStorageError(ApiError):
    status_code = 503
    default_message = "Media storage is unavailable"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error while processing request")
        return jsonify({"message": ApiError.default_message}), 500
