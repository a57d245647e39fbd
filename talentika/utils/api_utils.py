"""
API Utilities Module

FLOW OVERVIEW
- APIRequestValidator
  • validate_json_request → parse/validate JSON and return (ok, data, error).
  • require_fields → (ok, error) for missing keys.
  • get_int_arg → bounded integer query parameter.
- APIResponseFormatter
  • success(...) → `{'success': True, ...}` payloads.
  • failure(...) → `{'success': False, 'error', 'message'}` payloads.
- get_client_ip(): first X-Forwarded-For hop or remote_addr.

Used by the dashboard API and the admin API to keep response shapes identical.
"""

import logging
from typing import Dict, Any, Iterable, Tuple, Optional
from flask import request


def get_client_ip() -> Optional[str]:
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


class APIRequestValidator:
    """Handles common request validation logic."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_json_request(self, allow_empty: bool = False) -> Tuple[bool, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Validate and parse JSON request.

        Args:
            allow_empty: Accept a missing body as {}

        Returns:
            Tuple of (is_valid, data, error_response)
        """
        data = request.get_json(silent=True)

        if data is None:
            if allow_empty and not request.get_data():
                return True, {}, None
            self.logger.warning(f"Invalid or missing JSON from {get_client_ip()} on {request.path}")
            return False, None, APIResponseFormatter.failure(
                'Invalid request format. JSON payload required.', 'INVALID_JSON')

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid data type from {get_client_ip()}: {type(data)}")
            return False, None, APIResponseFormatter.failure(
                'Request data must be a JSON object.', 'INVALID_DATA_TYPE')

        return True, data, None

    def require_fields(self, data: Dict[str, Any], fields: Iterable[str]) -> Tuple[bool, Optional[Dict[str, Any]]]:
        missing = [name for name in fields if data.get(name) in (None, '')]
        if missing:
            return False, APIResponseFormatter.failure(
                f"Required fields missing: {', '.join(missing)}", 'VALIDATION_ERROR',
                missing_fields=missing)
        return True, None

    @staticmethod
    def get_int_arg(name: str, default: int, minimum: int = 1, maximum: int = 100) -> int:
        try:
            value = int(request.args.get(name, default))
        except (TypeError, ValueError):
            return default
        return max(minimum, min(value, maximum))


class APIResponseFormatter:
    """Builds the JSON bodies returned by API endpoints."""

    @staticmethod
    def success(message: Optional[str] = None, **payload) -> Dict[str, Any]:
        body = {'success': True}
        if message:
            body['message'] = message
        body.update(payload)
        return body

    @staticmethod
    def failure(message: str, error_code: str = 'ERROR', **extra) -> Dict[str, Any]:
        body = {'success': False, 'error': error_code, 'message': message}
        body.update(extra)
        return body


request_validator = APIRequestValidator()
