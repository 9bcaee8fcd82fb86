# storefront/utils/debug_routes.py
import os

from flask import jsonify
from sqlalchemy import func

from ..models import db, Order

SAFE_ENV_KEYS = {"RENDER", "PYTHON_VERSION", "MAIL_BACKEND"}


def register_debug_routes(app):
    """
    Endpoints de diagnóstico, só quando DEBUG_ROUTES=1.
    Não ligar em produção.
    """
    if not app.config.get("DEBUG_ROUTES"):
        return

    @app.get("/api/_routes")
    def _routes():
        out = []
        for rule in app.url_map.iter_rules():
            methods = sorted(m for m in rule.methods if m in {
                "GET", "POST", "PUT", "DELETE", "PATCH"
            })
            out.append({"rule": str(rule), "endpoint": rule.endpoint, "methods": methods})
        out.sort(key=lambda r: r["rule"])
        return jsonify(out)

    @app.get("/api/health/full")
    def _health_full():
        by_status = dict(
            db.session.query(Order.order_status, func.count(Order.id))
            .group_by(Order.order_status)
            .all()
        )
        env = {k: os.getenv(k) for k in SAFE_ENV_KEYS if os.getenv(k)}
        return jsonify({
            "status": "ok",
            "blueprints": sorted(app.blueprints.keys()),
            "orders_by_status": by_status,
            "env": env,
        })
