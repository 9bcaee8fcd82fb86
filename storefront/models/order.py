# storefront/models/order.py
import uuid
from enum import Enum

from . import db, utcnow


class OrderStatus(Enum):
    """Status do pedido na loja"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    """Status do pagamento"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


ADDRESS_PARTS = ("street", "city", "state", "zip", "country")


def _money(value):
    return float(value) if value is not None else 0.0


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = db.Column(db.String(64), unique=True, nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)

    # snapshot do cliente no momento da compra
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64))

    shipping_address_street = db.Column(db.String(255))
    shipping_address_city = db.Column(db.String(120))
    shipping_address_state = db.Column(db.String(120))
    shipping_address_zip = db.Column(db.String(32))
    shipping_address_country = db.Column(db.String(120), nullable=False)

    billing_address_street = db.Column(db.String(255))
    billing_address_city = db.Column(db.String(120))
    billing_address_state = db.Column(db.String(120))
    billing_address_zip = db.Column(db.String(32))
    billing_address_country = db.Column(db.String(120))

    # itens copiados (nome/preço do momento), sem FK para produtos
    items = db.Column(db.JSON, nullable=False, default=list)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    shipping_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False)

    order_status = db.Column(db.String(32), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = db.Column(db.String(32), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    payment_method = db.Column(db.String(64))
    transaction_id = db.Column(db.String(128))

    tracking_number = db.Column(db.String(128))
    carrier = db.Column(db.String(120))
    estimated_delivery_date = db.Column(db.Date)
    delivered_at = db.Column(db.DateTime)

    admin_notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", viewonly=True, lazy="joined")

    def _address(self, prefix):
        return {part: getattr(self, f"{prefix}_address_{part}") for part in ADDRESS_PARTS}

    def to_dict(self, include_user=False, include_admin=True):
        data = {
            "id": self.id,
            "orderNumber": self.order_number,
            "userId": self.user_id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "shippingAddress": self._address("shipping"),
            "billingAddress": self._address("billing"),
            "items": list(self.items or []),
            "subtotal": _money(self.subtotal),
            "shippingCost": _money(self.shipping_cost),
            "tax": _money(self.tax),
            "total": _money(self.total),
            "orderStatus": self.order_status,
            "paymentStatus": self.payment_status,
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "trackingNumber": self.tracking_number,
            "carrier": self.carrier,
            "estimatedDeliveryDate": self.estimated_delivery_date.isoformat() if self.estimated_delivery_date else None,
            "deliveredAt": self.delivered_at.isoformat() if self.delivered_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_admin:
            data["adminNotes"] = self.admin_notes
        if include_user:
            data["user"] = self.user.public_dict() if self.user else None
        return data

    def __repr__(self):
        return f"<Order id={self.id} number={self.order_number!r} status={self.order_status}>"
