import logging

from flask import Flask, jsonify, render_template, request
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .errors import QRTrackError, StorageFailure
from .models import db

logger = logging.getLogger(__name__)


def _wants_html():
    return request.path.startswith('/track/')


def register_error_handlers(app):
    @app.errorhandler(QRTrackError)
    def handle_domain_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(exc):
        db.session.rollback()
        logger.exception('storage failure on %s', request.path)
        if _wants_html():
            return render_template('error.html'), 500
        err = StorageFailure()
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        if isinstance(exc, HTTPException):
            return exc
        db.session.rollback()
        logger.exception('unhandled error on %s', request.path)
        if _wants_html():
            return render_template('error.html'), 500
        return jsonify({'error': 'Internal server error'}), 500


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config())
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    db.init_app(app)
    Migrate(app, db)
    # Trust reverse proxy headers (Render/Heroku)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    with app.app_context():
        db.create_all()

    from .routes_public import bp as public_bp
    from .routes_api import bp as api_bp
    from .routes_qrcodes import bp as qrcodes_bp
    app.register_blueprint(public_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(qrcodes_bp, url_prefix='/api/qrcodes')
    register_error_handlers(app)

    @app.get('/health')
    def health():
        return {'ok': True}

    return app
