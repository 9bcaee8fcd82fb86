# storefront/blueprints/orders.py
from flask import Blueprint, current_app, g, request

from ..utils.auth import admin_required, optional_user, user_required
from ..utils.errors import MissingField, NotFound
from ..utils.response import paginated_response, success_response

bp = Blueprint("orders", __name__)


def _service():
    return current_app.extensions["order_service"]


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp.post("/", strict_slashes=False)
@optional_user
def create_order():
    principal = g.principal
    order = _service().create_order(_body(), user_id=principal["sub"] if principal else None)
    return success_response(order.to_dict(include_admin=False), "Pedido criado com sucesso", 201)


@bp.get("/", strict_slashes=False)
@admin_required
def list_orders():
    status = request.args.get("status") or None
    payment_status = request.args.get("paymentStatus") or None
    search = request.args.get("search") or None
    q = _service().query_orders(status, payment_status, search)

    if "page" not in request.args:
        orders = [o.to_dict() for o in q.all()]
        return success_response(orders, "Pedidos encontrados")

    try:
        page = max(int(request.args.get("page", 1)), 1)
        per_page = max(min(int(request.args.get("per_page", 20)), 100), 1)
    except ValueError:
        page, per_page = 1, 20
    pag = q.paginate(page=page, per_page=per_page, error_out=False)
    return paginated_response(
        [o.to_dict() for o in pag.items],
        {"page": pag.page, "per_page": pag.per_page, "pages": pag.pages, "total": pag.total},
        "Pedidos encontrados",
    )


@bp.get("/user/orders")
@user_required
def list_user_orders():
    orders = _service().get_orders_by_user(g.principal["sub"])
    return success_response([o.to_dict(include_admin=False) for o in orders], "Pedidos encontrados")


@bp.get("/<order_number>")
def track_order(order_number):
    order = _service().get_order_by_number(order_number)
    if order is None:
        raise NotFound("Pedido não encontrado")
    return success_response(order.to_dict(include_user=True, include_admin=False), "Pedido encontrado")


@bp.get("/<order_id>/admin")
@admin_required
def get_order(order_id):
    order = _service().get_order_by_id(order_id)
    if order is None:
        raise NotFound("Pedido não encontrado")
    return success_response(order.to_dict(include_user=True), "Pedido encontrado")


@bp.patch("/<order_id>/status")
@admin_required
def update_status(order_id):
    status = _body().get("orderStatus")
    if status is None:
        raise MissingField("orderStatus")
    order = _service().update_status(order_id, status)
    return success_response(order.to_dict(), "Status do pedido atualizado")


@bp.patch("/<order_id>/payment-status")
@admin_required
def update_payment_status(order_id):
    status = _body().get("paymentStatus")
    if status is None:
        raise MissingField("paymentStatus")
    order = _service().update_payment_status(order_id, status)
    return success_response(order.to_dict(), "Status de pagamento atualizado")


@bp.patch("/<order_id>/tracking")
@admin_required
def add_tracking(order_id):
    data = _body()
    order = _service().add_tracking(
        order_id,
        data.get("trackingNumber"),
        data.get("carrier"),
        data.get("estimatedDeliveryDate"),
    )
    return success_response(order.to_dict(), "Rastreio adicionado")


@bp.patch("/<order_id>/deliver")
@admin_required
def mark_delivered(order_id):
    order = _service().mark_delivered(order_id)
    return success_response(order.to_dict(), "Pedido marcado como entregue")


@bp.patch("/<order_id>/notes")
@admin_required
def update_notes(order_id):
    order = _service().update_notes(order_id, _body().get("notes"))
    return success_response(order.to_dict(), "Notas atualizadas")


@bp.patch("/<order_id>/cancel")
@admin_required
def cancel_order(order_id):
    order = _service().cancel_order(order_id)
    return success_response(order.to_dict(), "Pedido cancelado")
