#!/usr/bin/env python3
"""
Talentika application entry point.

This module selects configuration based on environment variables, creates the
Flask application via `create_app`, and eagerly initializes an in-memory
database for testing modes. When executed directly, it runs the development
server. In production, a WSGI server should import `app` from this module.

Environment variables of interest:
- FLASK_ENV: if set to 'testing', enables in-memory DB and testing flags.
- DATABASE_URL: if set to 'sqlite:///:memory:' forces in-memory DB init.
- SECRET_KEY, FUNCTIONS_URL, STORAGE_URL, mail settings: consumed by `create_app`.
"""

import logging
import os
from talentika import create_app
from talentika.models import db

logger = logging.getLogger('talentika')

if os.getenv('FLASK_ENV') == 'testing':
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
        'MAIL_SUPPRESS_SEND': True,
    }
    app = create_app(test_config)
else:
    app = create_app()

if os.getenv('FLASK_ENV') == 'testing' or os.getenv('DATABASE_URL') == 'sqlite:///:memory:':
    with app.app_context():
        db.create_all()
        logger.info("In-memory database initialized")
else:
    logger.info("Database will be initialized via /init-db")

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
