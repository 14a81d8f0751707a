"""Backend utility functions for the Store Survey application."""
from functools import wraps
from flask import jsonify, request, g
from shared.access import has_feature, can_manage_users
from shared.submission import MandatoryAnswersMissing
from shared.validation import ValidationError
from .document_store import DocumentStoreError
import logging


logger = logging.getLogger(__name__)


def api_error(message, status_code=400, log_level='warning', details=None):
    """
    Standardized API error response with consistent logging.

    Args:
        message (str): Error message for the client
        status_code (int): HTTP status code
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')
        details (dict, optional): Additional details for logging

    Returns:
        Flask response: JSON error response
    """
    log_func = getattr(logger, log_level, logger.warning)
    if details:
        log_func(f"API Error ({status_code}): {message} - Details: {details}")
    else:
        log_func(f"API Error ({status_code}): {message}")

    return jsonify({'error': message}), status_code


def handle_api_exception(e, operation="operation", status_code=500):
    """
    Handle exceptions in API endpoints with consistent logging and responses.

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed
        status_code (int): HTTP status code to return

    Returns:
        Flask response: JSON error response
    """
    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True)
    return api_error(f"Failed to {operation}", status_code, 'error')


def not_found(resource='Resource'):
    """404 used both for missing resources and for resources the user may not see."""
    return api_error(f'{resource} not found', 404, 'info')


def get_json_data():
    """Get the request body as a JSON object.

    Raises:
        ValidationError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError('Request body must contain valid JSON')
    if not isinstance(data, dict):
        raise ValidationError('Request data must be a JSON object')
    return data


def bearer_token():
    """Return the bearer token of the current request, or None."""
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[len('Bearer '):].strip() or None
    return None


def request_list_arg(name):
    """Read a repeatable query argument (?id=a&id=b, or a comma separated value)."""
    values = []
    for value in request.args.getlist(name):
        values.extend(part.strip() for part in value.split(',') if part.strip())
    return values


def require_feature(feature):
    """Decorator rejecting users without the given feature permission."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not has_feature(getattr(g, 'user', None), feature):
                return api_error('Insufficient permissions', 403)
            return func(*args, **kwargs)
        return wrapper
    return decorator


def require_super_admin(func):
    """Decorator restricting an endpoint to active super admins."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not can_manage_users(getattr(g, 'user', None)):
            return api_error('Super admin privileges required', 403)
        return func(*args, **kwargs)
    return wrapper


def register_error_handlers(app):
    """Map domain exceptions that escape a view to JSON error responses."""

    @app.errorhandler(MandatoryAnswersMissing)
    def handle_missing_answers(e):
        logger.info(f"Submission rejected: {e}")
        return jsonify({'error': str(e), 'missing': e.to_dict()}), 400

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return api_error(str(e), 400)

    @app.errorhandler(DocumentStoreError)
    def handle_document_store_error(e):
        return handle_api_exception(e, e.operation)
