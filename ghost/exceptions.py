"""
Ghost - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class GhostException(Exception):
    """Base exception for Ghost"""
    def __init__(self, message: str, code: str = "GHOST_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'message': self.message
        }


class NetworkException(GhostException):
    """Transport failure talking to the Bungie platform. Transient."""
    def __init__(self, message: str, error: Exception = None):
        super().__init__(message, code="NETWORK_ERROR")
        self.error = error
        logger.warning(f"Network error: {message}")


class RemoteServiceException(GhostException):
    """The platform answered with a non-success envelope"""
    def __init__(self, error_code: int = -1, message: str = "", status: str = ""):
        super().__init__(message or f"Remote service error {error_code}", code="REMOTE_ERROR")
        self.error_code = error_code
        self.error_status = status
        logger.error(f"Remote service error {error_code} ({status}): {message}")

    def to_dict(self):
        data = super().to_dict()
        data['error_code'] = self.error_code
        data['error_status'] = self.error_status
        return data


class ContentFileNotFoundException(GhostException):
    """The content database for the current manifest is not on disk"""
    def __init__(self, path: str, message: str = None):
        super().__init__(message or f"Database file not found: {path}", code="FILE_NOT_FOUND")
        self.path = path
        logger.error(f"File error: {self.message}")


class ContentNotSynchronizedException(GhostException):
    """No manifest has been recorded yet"""
    def __init__(self, message: str = "Content has not been synchronized yet"):
        super().__init__(message, code="CONTENT_NOT_SYNCHRONIZED")
        logger.warning(message)


class ValidationException(GhostException):
    """Validation-related exceptions"""
    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")
        logger.warning(f"Validation error: {message}")


class DatabaseException(GhostException):
    """Database-related exceptions"""
    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class ContentHandleFault(RuntimeError):
    """A content database handle was used outside its open/closed lifecycle"""


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'error': True,
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(GhostException)
    def handle_ghost_exception(e):
        """Handle Ghost custom exceptions"""
        return jsonify(e.to_dict()), 400

    @app.errorhandler(ValidationException)
    def handle_validation_exception(e):
        return jsonify(e.to_dict()), 400

    @app.errorhandler(ContentFileNotFoundException)
    def handle_file_not_found_exception(e):
        return jsonify(e.to_dict()), 404

    @app.errorhandler(ContentNotSynchronizedException)
    def handle_not_synchronized_exception(e):
        return jsonify(e.to_dict()), 503

    @app.errorhandler(NetworkException)
    def handle_network_exception(e):
        return jsonify(e.to_dict()), 503

    @app.errorhandler(RemoteServiceException)
    def handle_remote_exception(e):
        return jsonify(e.to_dict()), 502

    @app.errorhandler(DatabaseException)
    def handle_database_exception(e):
        return jsonify(e.to_dict()), 500

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred'
        }), 500
