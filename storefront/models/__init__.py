# storefront/models/__init__.py
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    """UTC sem tzinfo (SQLite não guarda fuso)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


from .user import User  # noqa: E402
from .order import Order, OrderStatus, PaymentStatus  # noqa: E402

__all__ = ["db", "utcnow", "User", "Order", "OrderStatus", "PaymentStatus"]
