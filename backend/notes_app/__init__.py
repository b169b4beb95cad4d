import atexit
import logging
import os
from flask import Flask
from flask_cors import CORS

from .config import Config


def create_app(testing: bool = False, services=None):
    app = Flask(__name__)
    app.config["TESTING"] = testing

    if not testing:
        logging.basicConfig(
            level=Config.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # CORS configuration for development and production
    allowed_origins = [
        "http://localhost:3000",  # Local frontend dev server
    ]

    # Add production frontend URL if set
    if Config.FRONTEND_URL:
        allowed_origins.append(Config.FRONTEND_URL)

    # In development, allow all origins for easier testing
    if os.getenv("FLASK_ENV") == "development":
        CORS(app)
    else:
        CORS(app, origins=allowed_origins)

    if services is None:
        from .services.container import create_services

        Config.validate()
        services = create_services()
        atexit.register(services.close)
    app.extensions["services"] = services

    from .routes import bp as api_bp
    app.register_blueprint(api_bp, url_prefix="/api")

    return app
