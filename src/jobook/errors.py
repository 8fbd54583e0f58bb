from flask import jsonify
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Client-visible failure rendered as {"message": ...}."""

    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        return jsonify({'message': e.message}), e.status

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({'message': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        app.logger.exception('Unhandled error: %s', e)
        return jsonify({'message': 'Something went wrong!'}), 500
