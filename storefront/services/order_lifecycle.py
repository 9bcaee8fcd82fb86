"""
Motor de ciclo de vida do pedido.
Valida e aplica toda mutação pós-criação (status, pagamento, rastreio, notas, cancelamento).
Não faz commit: quem chama (OrderService) decide quando persistir.
"""

import logging
from datetime import date, datetime

from storefront.models import Order, OrderStatus, PaymentStatus, utcnow
from storefront.utils.errors import (
    InvalidDate,
    InvalidPaymentStatus,
    InvalidStatus,
    InvalidTransition,
    MissingField,
)

logger = logging.getLogger(__name__)


def allow_any_transition(current, new):
    """Grafo irrestrito: qualquer status alcança qualquer outro (override do admin)"""
    return True


def refund_always(order):
    """Cancelar sempre marca o pagamento como REFUNDED, mesmo sem pagamento prévio"""
    return PaymentStatus.REFUNDED


def refund_if_completed(order):
    """Só estorna o que foi pago; demais status de pagamento ficam como estão"""
    if order.payment_status == PaymentStatus.COMPLETED.value:
        return PaymentStatus.REFUNDED
    return PaymentStatus(order.payment_status or PaymentStatus.PENDING.value)


REFUND_POLICIES = {
    "always": refund_always,
    "if_completed": refund_if_completed,
}


def parse_order_status(value):
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatus(f"Status inválido: {value!r}. Use um de: {allowed}")


def parse_payment_status(value):
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in PaymentStatus)
        raise InvalidPaymentStatus(f"Status de pagamento inválido: {value!r}. Use um de: {allowed}")


def parse_calendar_date(value):
    """
    Converte a data estimada de entrega.

    Aceita date/datetime, 'YYYY-MM-DD' ou um datetime ISO-8601 (inclusive com 'Z').
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(f"Data inválida: {value!r}")

    raw = value.strip()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidDate(f"Data inválida: {value!r}")


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


class OrderLifecycle:
    """Operações que mutam um pedido depois de criado"""

    def __init__(self, transition_allowed=None, refund_policy=None):
        self.transition_allowed = transition_allowed or allow_any_transition
        self.refund_policy = refund_policy or refund_always

    @classmethod
    def from_config(cls, config):
        policy_name = config.get("ORDER_CANCEL_REFUND_POLICY", "always")
        policy = REFUND_POLICIES.get(policy_name)
        if policy is None:
            raise ValueError(f"ORDER_CANCEL_REFUND_POLICY desconhecida: {policy_name}")
        return cls(refund_policy=policy)

    def _move_to(self, order: Order, status: OrderStatus):
        current = OrderStatus(order.order_status or OrderStatus.PENDING.value)
        if not self.transition_allowed(current, status):
            raise InvalidTransition(
                f"Transição não permitida: {current.value} -> {status.value}"
            )
        order.order_status = status.value

    def set_order_status(self, order: Order, new_status) -> Order:
        status = parse_order_status(new_status)
        previous = order.order_status
        self._move_to(order, status)
        order.updated_at = utcnow()
        logger.info(f"Pedido {order.order_number}: status {previous} -> {status.value}")
        return order

    def set_payment_status(self, order: Order, new_status) -> Order:
        status = parse_payment_status(new_status)
        previous = order.payment_status
        order.payment_status = status.value
        order.updated_at = utcnow()
        logger.info(f"Pedido {order.order_number}: pagamento {previous} -> {status.value}")
        return order

    def add_tracking(self, order: Order, tracking_number, carrier, estimated_delivery_date=None) -> Order:
        """
        Registra o rastreio do envio.

        Args:
            tracking_number: código de rastreio (obrigatório)
            carrier: transportadora (obrigatório)
            estimated_delivery_date: data prevista, opcional

        Returns:
            O próprio pedido, já alterado
        """
        missing = []
        if _blank(tracking_number):
            missing.append("trackingNumber")
        if _blank(carrier):
            missing.append("carrier")
        if missing:
            raise MissingField(*missing)

        estimated = None
        if not _blank(estimated_delivery_date):
            estimated = parse_calendar_date(estimated_delivery_date)

        order.tracking_number = str(tracking_number).strip()
        order.carrier = str(carrier).strip()
        order.estimated_delivery_date = estimated
        order.updated_at = utcnow()
        logger.info(f"Pedido {order.order_number}: rastreio {order.tracking_number} ({order.carrier})")
        return order

    def mark_delivered(self, order: Order) -> Order:
        # reentregar só sobrescreve o horário
        self._move_to(order, OrderStatus.DELIVERED)
        now = utcnow()
        order.delivered_at = now
        order.updated_at = now
        logger.info(f"Pedido {order.order_number}: entregue em {now.isoformat()}")
        return order

    def cancel(self, order: Order) -> Order:
        self._move_to(order, OrderStatus.CANCELLED)
        order.payment_status = self.refund_policy(order).value
        order.updated_at = utcnow()
        logger.info(f"Pedido {order.order_number}: cancelado (pagamento {order.payment_status})")
        return order

    def set_admin_notes(self, order: Order, notes) -> Order:
        if _blank(notes):
            raise MissingField("notes")
        order.admin_notes = notes
        order.updated_at = utcnow()
        return order
