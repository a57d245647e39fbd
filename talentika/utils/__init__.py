"""
Utilities Package

This package contains the backend client, managers, domain services and
helper modules shared by the route blueprints.
"""

from . import auth_utils
from . import validators
from . import error_handlers

__all__ = [
    'auth_utils',
    'validators',
    'error_handlers'
]
