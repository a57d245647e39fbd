"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • Syntax and length checks; returns sanitized lowercased value.
- validate_password_hash(hash)
  • Enforce SHA-256 hex string constraints.
- validate_password_strength(password)
  • Enforce length and character variety.
- validate_required_fields(data, required)
  • Report which required form fields are blank.
- validate_image_upload(filename, content_type, size, max_bytes)
  • Allow only common web image types under the size limit.
- parse_datetime(value) / parse_bool(value) / parse_list(value)
  • Coerce raw form values (strings from HTML forms or JSON) into column types.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.
"""

import re
from datetime import datetime, date
from typing import Any, Iterable, List, Optional
from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[Any] = None
    missing_fields: List[str] = field(default_factory=list)


class InputValidator:
    """Validation helpers shared by auth routes, models and managers"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    IMAGE_CONTENT_TYPES = {
        'image/png': 'png',
        'image/jpeg': 'jpg',
        'image/webp': 'webp',
        'image/gif': 'gif',
    }

    TRUE_VALUES = {'1', 'true', 'yes', 'on', 'y'}

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email must be a non-empty string")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email cannot be empty")

        # RFC 5321 limit
        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")

        if not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.split('@')
        if len(local_part) > 64:
            return ValidationResult(False, "Email local part too long (max 64 characters)")

        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "Email local part has misplaced dots")

        if domain.startswith('.') or domain.endswith('.') or '..' in domain:
            return ValidationResult(False, "Email domain has misplaced dots")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_password_hash(cls, password_hash: str) -> ValidationResult:
        """SHA-256 hex digest: exactly 64 lowercase hex characters"""
        if not password_hash or not isinstance(password_hash, str):
            return ValidationResult(False, "Password hash must be a non-empty string")

        password_hash = password_hash.strip()
        if len(password_hash) != 64:
            return ValidationResult(False, "Invalid password hash format: must be exactly 64 characters")

        if not all(c in '0123456789abcdef' for c in password_hash):
            return ValidationResult(False, "Invalid password hash format: must contain only lowercase hexadecimal characters")

        return ValidationResult(True, sanitized_value=password_hash)

    @classmethod
    def validate_password_strength(cls, password: str) -> ValidationResult:
        """
        Validate password strength requirements

        Args:
            password: Password to validate

        Returns:
            ValidationResult with validation status
        """
        if not password or not isinstance(password, str):
            return ValidationResult(False, "Password must be a non-empty string")

        if len(password) < 8:
            return ValidationResult(False, "Password must be at least 8 characters long")

        if len(password) > 128:
            return ValidationResult(False, "Password too long (max 128 characters)")

        weak_passwords = {
            'password', '12345678', 'qwertyui', 'password123', 'talentika', 'letmein1'
        }
        if password.lower() in weak_passwords:
            return ValidationResult(False, "Password is too common, choose a stronger password")

        has_upper = any(c.isupper() for c in password)
        has_lower = any(c.islower() for c in password)
        has_digit = any(c.isdigit() for c in password)

        if not (has_upper and has_lower and has_digit):
            return ValidationResult(False, "Password must contain uppercase, lowercase, and numeric characters")

        return ValidationResult(True)

    @classmethod
    def validate_required_fields(cls, data: dict, required: Iterable[str]) -> ValidationResult:
        """Blank strings, None, and empty lists count as missing"""
        missing = []
        for name in required:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()) or value == []:
                missing.append(name)
        if missing:
            return ValidationResult(
                False,
                f"Required fields missing: {', '.join(missing)}",
                missing_fields=missing,
            )
        return ValidationResult(True, sanitized_value=data)

    @classmethod
    def validate_image_upload(cls, filename: str, content_type: str, size: int,
                              max_bytes: int) -> ValidationResult:
        """Returns the file extension to store under as sanitized_value"""
        if not filename:
            return ValidationResult(False, "No file selected")
        extension = cls.IMAGE_CONTENT_TYPES.get((content_type or '').lower())
        if extension is None:
            return ValidationResult(False, "Only PNG, JPEG, WEBP and GIF images are allowed")
        if size <= 0:
            return ValidationResult(False, "Uploaded file is empty")
        if size > max_bytes:
            return ValidationResult(False, f"File too large (max {max_bytes // (1024 * 1024)} MB)")
        return ValidationResult(True, sanitized_value=extension)

    @classmethod
    def parse_datetime(cls, value: Any) -> Optional[datetime]:
        """ISO-8601 string, date or datetime → naive UTC datetime; blank → None"""
        if value is None or value == '':
            return None
        if isinstance(value, datetime):
            return value.replace(tzinfo=None) if value.tzinfo else value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid date value: {value}")
        if parsed.tzinfo is not None:
            parsed = parsed.replace(tzinfo=None) - (parsed.utcoffset() or (parsed - parsed))
        return parsed

    @classmethod
    def parse_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in cls.TRUE_VALUES

    @classmethod
    def parse_list(cls, value: Any) -> List[str]:
        """List values pass through (stripped); strings split on commas"""
        if value is None or value == '':
            return []
        if isinstance(value, (list, tuple)):
            items = value
        else:
            items = str(value).split(',')
        return [str(item).strip() for item in items if str(item).strip()]

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize free text input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()
        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        sanitized = sanitized.replace('\x00', '')
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')
        return sanitized


# Convenience functions for common validations
def validate_email(email: str) -> ValidationResult:
    return InputValidator.validate_email(email)


def validate_password_hash(password_hash: str) -> ValidationResult:
    return InputValidator.validate_password_hash(password_hash)


def validate_password_strength(password: str) -> ValidationResult:
    return InputValidator.validate_password_strength(password)


def validate_required_fields(data: dict, required: Iterable[str]) -> ValidationResult:
    return InputValidator.validate_required_fields(data, required)


def validate_image_upload(filename: str, content_type: str, size: int, max_bytes: int) -> ValidationResult:
    return InputValidator.validate_image_upload(filename, content_type, size, max_bytes)


def parse_datetime(value: Any) -> Optional[datetime]:
    return InputValidator.parse_datetime(value)


def parse_bool(value: Any) -> bool:
    return InputValidator.parse_bool(value)


def parse_list(value: Any) -> List[str]:
    return InputValidator.parse_list(value)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    return InputValidator.sanitize_input(input_string, max_length)
