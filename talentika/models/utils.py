"""
Model Utilities

This module contains utility functions for the models package.
"""

import re
import secrets
import string
import unicodedata
from datetime import datetime


def generate_user_id():
    """Generate a unique 12-character user ID"""
    return ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(12))


def generate_activation_token():
    """Generate a secure activation token"""
    return secrets.token_urlsafe(32)


def generate_password_reset_token():
    """Generate a secure password reset token"""
    return secrets.token_urlsafe(32)


def generate_invoice_number():
    """Generate an invoice number like INV-20250101-1A2B3C"""
    suffix = ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(6))
    return f"INV-{datetime.utcnow().strftime('%Y%m%d')}-{suffix}"


def slugify(text):
    """Turn a title into a lowercase, dash separated slug"""
    if not text:
        return ''
    normalized = unicodedata.normalize('NFKD', str(text)).encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^a-zA-Z0-9\s-]', '', normalized).strip().lower()
    return re.sub(r'[\s_-]+', '-', slug).strip('-')


def isoformat(value):
    """ISO-8601 string for a datetime/date column, None passes through"""
    return value.isoformat() if value else None
