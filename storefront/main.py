import logging
import os

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from storefront.config import load_config
from storefront.models import db
from storefront.blueprints.orders import bp as orders_bp
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.utils.debug_routes import register_debug_routes
from storefront.utils.errors import StorefrontError
from storefront.utils.response import error_response

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask):
    @app.errorhandler(StorefrontError)
    def _storefront_error(e):
        if e.status_code >= 500:
            logger.error(f"Erro interno: {e.message}")
        return error_response(e.message, e.status_code, e.errors)

    @app.errorhandler(HTTPException)
    def _http_error(e):
        return error_response(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def _unhandled(e):
        db.session.rollback()
        logger.exception(f"Erro não tratado: {e}")
        return error_response("Internal Server Error", 500)


def create_app(test_config=None) -> Flask:
    app = Flask(__name__)
    app.config.update(load_config())
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config.get("LOG_LEVEL", "INFO"))

    # CORS somente para o frontend em /api/*
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # Banco
    db.init_app(app)
    with app.app_context():
        # cria pasta do sqlite se necessário
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
            os.makedirs(os.path.join(os.path.dirname(__file__), "database"), exist_ok=True)
        db.create_all()

    notifications = app.config.get("NOTIFICATION_SINK") or NotificationService.from_config(app.config)
    app.extensions["notifications"] = notifications
    app.extensions["order_service"] = OrderService.from_config(app.config, notifications)

    @app.get("/api/health")
    def health():
        return {"status": "healthy", "service": "Storefront Orders API"}, 200

    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    register_debug_routes(app)
    register_error_handlers(app)
    return app

