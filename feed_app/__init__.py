import logging
import os
import sys

from flask import Flask

from feed_app.config import Config
from feed_app.db import db
from feed_app.errors import register_error_handlers
from feed_app.extensions.extensions import cors, jwt, ma, socketio


def _setup_logging(level_name):
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    _setup_logging(app.config["LOG_LEVEL"])
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    db.init_app(app)
    ma.init_app(app)
    jwt.init_app(app)
    cors.init_app(
        app,
        origins=app.config["CORS_ALLOWED_ORIGINS"],
        supports_credentials=True,
    )
    # python-socketio only understands literal origins.
    socketio.init_app(
        app,
        async_mode="threading",
        cors_allowed_origins=[
            origin for origin in app.config["CORS_ALLOWED_ORIGINS"]
            if not origin.startswith("^")
        ],
    )

    register_error_handlers(app)

    from feed_app.routes.auth_routes import auth_bp
    from feed_app.routes.main_routes import main_bp
    from feed_app.routes.post_routes import post_bp
    from feed_app.socket_events import register_socket_events

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(post_bp, url_prefix="/api")
    app.register_blueprint(main_bp)
    register_socket_events()

    with app.app_context():
        db.create_all()

    return app
