from flask import Blueprint, abort, current_app, request
from flask_login import login_required, current_user

from app.errors import IntakeClosedError
from app.models import admin_required
from app.services import IntakeService, OrderService
from app.services.availability import resolve
from app.services.orders import ALL_BATCHES
from app.utils import utcnow

bp = Blueprint("orders", __name__)


@bp.route("/submit", methods=["POST"])
@login_required
def submit():
    """Submit a request for the current batch."""
    now = utcnow()
    intake = IntakeService.get_settings()
    availability = resolve(intake, now)

    if not availability.is_open:
        raise IntakeClosedError("The request form is closed.", availability.to_dict())
    if intake.current_batch_id is None:
        raise IntakeClosedError("No distribution is open for requests yet.")

    order = OrderService.submit(
        current_user,
        request.get_json(silent=True),
        intake.current_batch_id,
        now,
        pickup_date=intake.next_pickup_date,
    )
    return {"id": order.id, "batch_id": order.batch_id}, 201


@bp.route("/check")
@login_required
def check():
    """Has the caller already ordered in a batch (default: the current one)?"""
    batch_id = request.args.get("batchId") or IntakeService.get_settings().current_batch_id
    if not batch_id:
        return {"has_ordered": False, "batch_id": None}
    return {
        "has_ordered": OrderService.has_submitted(current_user.id, batch_id),
        "batch_id": batch_id,
    }


@bp.route("/mine")
@login_required
def mine():
    """The caller's own orders."""
    orders = OrderService.orders_for_user(current_user.id)
    return {"orders": [order.to_dict() for order in orders]}


@bp.route("/")
@login_required
@admin_required
def index():
    """All orders, newest first, optionally for one batch."""
    batch_id = request.args.get("batch", ALL_BATCHES)
    orders = OrderService.list_orders(batch_id)
    return {"batch_id": batch_id, "orders": [order.to_dict() for order in orders]}


@bp.route("/<int:id>/status", methods=["POST"])
@login_required
@admin_required
def update_status(id):
    """Mark an order pending or completed."""
    order = OrderService.get_order(id)
    if not order:
        abort(404, description="Order not found")

    data = request.get_json(silent=True) or {}
    OrderService.set_status(order, data.get("status"), utcnow())
    current_app.logger.info("%s set order %s to %s", current_user.email, id, order.status)
    return order.to_dict()


@bp.route("/<int:id>/packing", methods=["POST"])
@login_required
@admin_required
def update_packing(id):
    """Update the packing status of one stage of an order."""
    order = OrderService.get_order(id)
    if not order:
        abort(404, description="Order not found")

    data = request.get_json(silent=True) or {}
    OrderService.set_packing_status(order, data.get("stage"), data.get("status"), utcnow())
    return order.to_dict()
