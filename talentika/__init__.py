"""
Talentika Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply env-based config, then test overrides when given.
  • Configure logging level, init extensions (DB, Mail).
  • Register blueprints: main (/), auth (/auth), admin (/admin), api (/api).
  • Register global error handlers and per-request prometheus observation.
"""

import logging
import time
from flask import Flask, g, request
from flask_mail import Mail
from .models import db
from .routes import auth_bp, main_bp, admin_bp, api_bp
from .config import Config
from .utils.prom_metrics import observe_request


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    if not app.testing:
        logging.basicConfig(
            level=level,
            format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
        )
    logging.getLogger('talentika').setLevel(level)
    app.logger.setLevel(level)


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__,
                template_folder='../templates',
                static_folder='../static')

    # Environment-based configuration, test overrides on top
    app.config.from_object(Config())
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    Mail(app)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api')

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def record_request(response):
        started = getattr(g, 'request_started', None)
        if started is not None:
            observe_request(request.endpoint or 'unmatched', response.status_code, time.time() - started)
        return response

    app.logger.info(f"Talentika app created (testing={app.testing})")
    return app
