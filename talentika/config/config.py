"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
- Remote collaborators (functions endpoint, object storage) and payment callback
  settings are read here so routes never touch os.environ directly.
"""

import os
from dotenv import load_dotenv


class Config:
    """Base configuration class"""

    def __init__(self):
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # Testing reads the process environment only
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')

    @property
    def SECRET_KEY(self):
        """Application secret key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Relational store connection URI"""
        return os.getenv('DATABASE_URL', 'sqlite:///talentika.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def LOG_LEVEL(self):
        """Root log level for the application logger"""
        return os.getenv('LOG_LEVEL', 'INFO').upper()

    @property
    def MAIL_SERVER(self):
        """Mail server hostname"""
        return os.getenv('MAIL_SERVER', 'smtp.gmail.com')

    @property
    def MAIL_PORT(self):
        return int(os.getenv('MAIL_PORT', 587))

    @property
    def MAIL_USE_TLS(self):
        return os.getenv('MAIL_USE_TLS', 'True').lower() == 'true'

    @property
    def MAIL_USE_SSL(self):
        return os.getenv('MAIL_USE_SSL', 'False').lower() == 'true'

    @property
    def MAIL_USERNAME(self):
        return os.getenv('MAIL_USERNAME')

    @property
    def MAIL_PASSWORD(self):
        return os.getenv('MAIL_PASSWORD')

    @property
    def MAIL_DEFAULT_SENDER(self):
        """Default sender email address"""
        return os.getenv('MAIL_DEFAULT_SENDER', 'no-reply@talentika.id')

    @property
    def FUNCTIONS_URL(self):
        """Base URL of the remote function endpoints (web-scraper, create-xendit-payment)"""
        return os.getenv('FUNCTIONS_URL', 'http://localhost:54321/functions/v1')

    @property
    def STORAGE_URL(self):
        """Base URL of the object storage API"""
        return os.getenv('STORAGE_URL', 'http://localhost:54321/storage/v1')

    @property
    def BACKEND_SERVICE_KEY(self):
        """Bearer key sent to remote functions and storage"""
        return os.getenv('BACKEND_SERVICE_KEY', '')

    @property
    def REMOTE_TIMEOUT_SECONDS(self):
        """Timeout applied to every remote function or storage call"""
        return float(os.getenv('REMOTE_TIMEOUT_SECONDS', 30))

    @property
    def MAX_UPLOAD_BYTES(self):
        """Largest image accepted by the upload endpoint"""
        return int(os.getenv('MAX_UPLOAD_BYTES', 5 * 1024 * 1024))

    @property
    def PAYMENT_CALLBACK_TOKEN(self):
        """Shared token expected in the X-Callback-Token header of payment webhooks"""
        return os.getenv('PAYMENT_CALLBACK_TOKEN')

    @property
    def PAYMENT_CURRENCY(self):
        return os.getenv('PAYMENT_CURRENCY', 'IDR')

    @property
    def SCRAPING_CATEGORIES(self):
        """Categories requested from the web-scraper function when none are given"""
        raw = os.getenv('SCRAPING_CATEGORIES', 'SCHOLARSHIP,JOB,COMPETITION')
        return [c.strip().upper() for c in raw.split(',') if c.strip()]

    @property
    def SESSION_COOKIE_SECURE(self):
        """Whether session cookies should be secure (HTTPS only)"""
        return os.getenv('SESSION_COOKIE_SECURE', 'False').lower() == 'true'

    @property
    def SESSION_COOKIE_HTTPONLY(self):
        return True

    @property
    def SESSION_COOKIE_SAMESITE(self):
        """Session cookie SameSite policy"""
        return 'Lax'

    @property
    def PERMANENT_SESSION_LIFETIME(self):
        """Session lifetime in seconds"""
        return 3600 * 12
