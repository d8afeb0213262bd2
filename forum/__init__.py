from datetime import timedelta

from flask import Flask, jsonify, render_template, request

from forum.cli import register_commands
from forum.config import Config
from forum.db import init_db
from forum.errors import StorageError, TokenGenerationError
from forum.extensions.extensions import ma
from forum.routes.auth_routes import auth_bp
from forum.routes.main_routes import main_bp
from forum.routes.vote_routes import vote_bp
from forum.services.auth_service import AuthService
from forum.services.content_service import ContentService
from forum.services.session_service import SessionManager
from forum.services.vote_service import VoteService


API_PATHS = ("/like", "/commentlike")


def _wants_json() -> bool:
    return request.path in API_PATHS or request.is_json


def _server_error(message: str):
    if _wants_json():
        return jsonify({"error": message}), 500
    return render_template("error.html", message=message), 500


def register_error_handlers(app):
    @app.errorhandler(StorageError)
    def handle_storage_error(error):
        app.logger.exception("Store operation failed on %s %s", request.method, request.path)
        return _server_error("Internal server error")

    @app.errorhandler(TokenGenerationError)
    def handle_token_error(error):
        app.logger.exception("Could not generate a session token")
        return _server_error("Internal server error")


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    store = init_db(app)
    ma.init_app(app)

    sessions = SessionManager(
        store,
        lifetime=timedelta(hours=app.config["SESSION_LIFETIME_HOURS"]),
    )
    app.extensions["session_manager"] = sessions
    app.extensions["auth_service"] = AuthService(
        store,
        sessions,
        password_min_length=app.config["PASSWORD_MIN_LENGTH"],
    )
    app.extensions["vote_service"] = VoteService(store)
    app.extensions["content_service"] = ContentService(store)

    app.register_blueprint(auth_bp)
    app.register_blueprint(vote_bp)
    app.register_blueprint(main_bp)

    register_error_handlers(app)
    register_commands(app)

    @app.after_request
    def apply_security_headers(response):
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return response

    return app
