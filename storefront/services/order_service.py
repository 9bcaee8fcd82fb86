"""
Serviço de pedidos: criação, consultas e orquestração das mutações do ciclo de vida
"""

import json
import logging
import secrets
import string
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from storefront.models import db, Order, OrderStatus, PaymentStatus, User
from storefront.models.order import ADDRESS_PARTS
from storefront.services.notification_service import ORDER_CONFIRMATION, ORDER_SHIPPED
from storefront.services.order_lifecycle import (
    OrderLifecycle,
    parse_order_status,
    parse_payment_status,
)
from storefront.utils.errors import (
    DuplicateOrderNumber,
    InvalidAmount,
    MissingField,
    NotFound,
    StorefrontError,
    ValidationError,
)

logger = logging.getLogger(__name__)

BASE36 = string.digits + string.ascii_uppercase
MONEY_FIELDS = (
    ("subtotal", "subtotal"),
    ("shippingCost", "shipping_cost"),
    ("tax", "tax"),
)
# limite de Numeric(12, 2)
MAX_AMOUNT = Decimal("1e10")


def generate_order_number():
    """ORD-<epoch ms>-<sufixo base36>; a unicidade real vem do índice único"""
    stamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(BASE36) for _ in range(6))
    return f"ORD-{stamp}-{suffix}"


def to_amount(value, field):
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite() or amount < 0 or amount >= MAX_AMOUNT:
            raise InvalidAmount(f"Valor inválido para {field}: {value!r}")
        return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Valor inválido para {field}: {value!r}")


def _to_quantity(value):
    """Só inteiros: 2.9 ou True não viram 2 / 1"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _normalize_items(raw):
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("items deve ser uma lista JSON válida")
    if not raw:
        raise MissingField("items")
    if not isinstance(raw, list):
        raise ValidationError("items deve ser uma lista")

    items = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {idx} inválido")
        quantity = _to_quantity(item.get("quantity", 1))
        if quantity is None or quantity < 1:
            raise ValidationError(f"Quantidade inválida no item {idx}")
        items.append({
            "productId": str(item.get("productId") or item.get("id") or ""),
            "productName": str(item.get("productName") or item.get("name") or ""),
            "quantity": quantity,
            "price": float(to_amount(item.get("price", 0), f"items[{idx}].price")),
        })
    return items


def _address_fields(data, prefix):
    """Aceita endereço plano (shippingAddressCity) ou aninhado (shippingAddress.city)"""
    nested = data.get(f"{prefix}Address")
    if not isinstance(nested, dict):
        nested = {}
    fields = {}
    for part in ADDRESS_PARTS:
        flat_key = f"{prefix}Address{part.capitalize()}"
        value = data.get(flat_key, nested.get(part))
        fields[f"{prefix}_address_{part}"] = _text(value)
    return fields


class OrderService:
    """Orquestra criação e leitura de pedidos; toda mutação passa pelo OrderLifecycle"""

    def __init__(self, lifecycle=None, notifications=None, default_country="Nigeria",
                 max_attempts=3, number_generator=None):
        self.lifecycle = lifecycle or OrderLifecycle()
        self.notifications = notifications
        self.default_country = default_country
        self.max_attempts = max(1, int(max_attempts))
        self.number_generator = number_generator or generate_order_number

    @classmethod
    def from_config(cls, config, notifications):
        return cls(
            lifecycle=OrderLifecycle.from_config(config),
            notifications=notifications,
            default_country=config.get("DEFAULT_COUNTRY", "Nigeria"),
            max_attempts=config.get("ORDER_NUMBER_MAX_ATTEMPTS", 3),
        )

    # ------------------------------------------------------------------
    # Notificações (best-effort)
    # ------------------------------------------------------------------
    def _notify(self, kind, payload):
        if self.notifications is None:
            return
        try:
            self.notifications.send(kind, payload)
        except Exception as e:
            logger.error(f"Falha ao disparar {kind} do pedido {payload.get('orderNumber')}: {e}")

    # ------------------------------------------------------------------
    # Criação
    # ------------------------------------------------------------------
    def _build_fields(self, data, user_id=None):
        customer_name = _text(data.get("customerName"))
        customer_email = _text(data.get("customerEmail"))
        missing = [name for name, value in (
            ("customerName", customer_name),
            ("customerEmail", customer_email),
        ) if not value]
        if not data.get("items"):
            missing.append("items")
        if data.get("total") is None or str(data.get("total")).strip() == "":
            missing.append("total")
        if missing:
            raise MissingField(*missing)

        fields = {
            "customer_name": customer_name,
            "customer_email": customer_email,
            "customer_phone": _text(data.get("customerPhone")),
            "items": _normalize_items(data.get("items")),
            "total": to_amount(data.get("total"), "total"),
            "order_status": OrderStatus.PENDING.value,
            "payment_status": parse_payment_status(data.get("paymentStatus") or PaymentStatus.PENDING).value,
            "payment_method": _text(data.get("paymentMethod")),
            "transaction_id": _text(data.get("transactionId")),
        }
        for key, column in MONEY_FIELDS:
            raw = data.get(key)
            fields[column] = to_amount(raw, key) if raw not in (None, "") else Decimal("0.00")

        fields.update(_address_fields(data, "shipping"))
        fields.update(_address_fields(data, "billing"))
        if not fields["shipping_address_country"]:
            fields["shipping_address_country"] = self.default_country

        if user_id and db.session.get(User, user_id) is not None:
            fields["user_id"] = user_id
        return fields

    def _number_taken(self, order_number):
        return db.session.query(Order.id).filter_by(order_number=order_number).first() is not None

    def create_order(self, data, user_id=None) -> Order:
        """
        Cria um pedido novo (sempre PENDING).

        Args:
            data: payload camelCase vindo da API
            user_id: id do usuário autenticado (None para convidado)

        Returns:
            Pedido persistido
        """
        fields = self._build_fields(data or {}, user_id=user_id)

        order = None
        for attempt in range(1, self.max_attempts + 1):
            candidate = Order(order_number=self.number_generator(), **fields)
            db.session.add(candidate)
            try:
                db.session.commit()
                order = candidate
                break
            except IntegrityError:
                db.session.rollback()
                if not self._number_taken(candidate.order_number):
                    raise
                logger.warning(
                    f"Número de pedido {candidate.order_number} já existe "
                    f"(tentativa {attempt}/{self.max_attempts})"
                )

        if order is None:
            raise DuplicateOrderNumber(
                f"Não foi possível gerar um número de pedido único após {self.max_attempts} tentativas"
            )

        logger.info(f"Pedido {order.order_number} criado para {order.customer_email} (total {order.total})")

        self._notify(ORDER_CONFIRMATION, {
            "customerName": order.customer_name,
            "customerEmail": order.customer_email,
            "orderNumber": order.order_number,
            "total": float(order.total),
            "items": list(order.items),
        })
        return order

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------
    def get_order_by_id(self, order_id):
        return db.session.get(Order, order_id)

    def get_order_by_number(self, order_number):
        return Order.query.filter_by(order_number=order_number).first()

    def get_orders_by_user(self, user_id):
        return (
            Order.query.filter_by(user_id=user_id)
            .order_by(Order.created_at.desc())
            .all()
        )

    def query_orders(self, status=None, payment_status=None, search=None):
        q = Order.query
        if status:
            q = q.filter(Order.order_status == parse_order_status(status).value)
        if payment_status:
            q = q.filter(Order.payment_status == parse_payment_status(payment_status).value)
        search = (search or "").strip()
        if search:
            q = q.filter(or_(
                Order.order_number.icontains(search, autoescape=True),
                Order.customer_email.icontains(search, autoescape=True),
                Order.customer_name.icontains(search, autoescape=True),
            ))
        return q.order_by(Order.created_at.desc())

    def get_all_orders(self, status=None, payment_status=None, search=None):
        return self.query_orders(status, payment_status, search).all()

    # ------------------------------------------------------------------
    # Mutações (delegam ao ciclo de vida)
    # ------------------------------------------------------------------
    def _apply(self, order_id, operation, *args):
        order = self.get_order_by_id(order_id)
        if order is None:
            raise NotFound("Pedido não encontrado")
        try:
            operation(order, *args)
            db.session.commit()
        except StorefrontError:
            db.session.rollback()
            raise
        return order

    def update_status(self, order_id, new_status):
        return self._apply(order_id, self.lifecycle.set_order_status, new_status)

    def update_payment_status(self, order_id, new_status):
        return self._apply(order_id, self.lifecycle.set_payment_status, new_status)

    def add_tracking(self, order_id, tracking_number, carrier, estimated_delivery_date=None):
        order = self._apply(
            order_id, self.lifecycle.add_tracking,
            tracking_number, carrier, estimated_delivery_date,
        )
        self._notify(ORDER_SHIPPED, {
            "customerName": order.customer_name,
            "customerEmail": order.customer_email,
            "orderNumber": order.order_number,
            "trackingNumber": order.tracking_number,
            "carrier": order.carrier,
            "estimatedDeliveryDate": (
                order.estimated_delivery_date.isoformat() if order.estimated_delivery_date else None
            ),
        })
        return order

    def mark_delivered(self, order_id):
        return self._apply(order_id, self.lifecycle.mark_delivered)

    def update_notes(self, order_id, notes):
        return self._apply(order_id, self.lifecycle.set_admin_notes, notes)

    def cancel_order(self, order_id):
        return self._apply(order_id, self.lifecycle.cancel)
