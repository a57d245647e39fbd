"""
Error Handlers

FLOW OVERVIEW
- Exception hierarchy raised by the backend client, managers and remote clients.
  Every one carries a short user-facing `message` (the "toast") and an HTTP status.
- render_error_page(title, message, status): HTML error page.
- json_error(message, status, error_code): uniform JSON failure payload.
- register_error_handlers(app): 404/500 plus TalentikaError → JSON for API paths.
"""

import logging
from flask import render_template, request, jsonify

logger = logging.getLogger(__name__)


class TalentikaError(Exception):
    """Base error with a short message safe to show to the user."""

    status_code = 500
    error_code = 'INTERNAL_ERROR'

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class BackendError(TalentikaError):
    """A read/write against the relational store failed."""

    error_code = 'BACKEND_ERROR'


class RecordNotFound(TalentikaError):
    status_code = 404
    error_code = 'NOT_FOUND'


class ValidationError(TalentikaError):
    """Submitted form data failed validation."""

    status_code = 400
    error_code = 'VALIDATION_ERROR'


class ConfirmationRequired(TalentikaError):
    """A destructive action was requested without explicit confirmation."""

    status_code = 409
    error_code = 'CONFIRMATION_REQUIRED'


class PermissionDenied(TalentikaError):
    status_code = 403
    error_code = 'FORBIDDEN'


class RemoteFunctionError(TalentikaError):
    """A remote function invocation failed or returned an error payload."""

    status_code = 502
    error_code = 'REMOTE_FUNCTION_ERROR'


class StorageError(TalentikaError):
    """An object storage upload failed."""

    status_code = 502
    error_code = 'STORAGE_ERROR'


def render_error_page(title, message, status_code):
    """Render a user-friendly error page"""
    return render_template('error.html', title=title, message=message), status_code


def json_error(message, status_code=400, error_code=None, **extra):
    """JSON failure body shared by every API endpoint"""
    payload = {
        'success': False,
        'error': error_code or 'ERROR',
        'message': message,
    }
    payload.update(extra)
    return jsonify(payload), status_code


def _wants_json():
    path = request.path or ''
    return path.startswith('/api') or path.startswith('/admin/api') or request.is_json


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(TalentikaError)
    def talentika_error(error):
        from ..models import db
        db.session.rollback()
        app.logger.warning(f"{error.error_code} on {request.method} {request.path}: {error.message}")
        if _wants_json():
            extra = {'details': error.details} if error.details else {}
            return json_error(error.message, error.status_code, error.error_code, **extra)
        return render_error_page('Something went wrong', error.message, error.status_code)

    @app.errorhandler(404)
    def not_found(error):
        if _wants_json():
            return json_error('Resource not found.', 404, 'NOT_FOUND')
        return render_error_page('Page Not Found',
            'The page you are looking for does not exist.', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return json_error('Method not allowed.', 405, 'METHOD_NOT_ALLOWED')

    @app.errorhandler(500)
    def internal_error(error):
        from ..models import db
        db.session.rollback()
        if _wants_json():
            return json_error('Something went wrong on our end. Please try again later.',
                              500, 'INTERNAL_ERROR')
        return render_error_page('Internal Server Error',
            'Something went wrong on our end. Please try again later.', 500)
