from flask import Blueprint, abort
from flask_login import login_required

from app.models import admin_required
from app.services import BatchService

bp = Blueprint("batches", __name__)


def _with_order_count(batch) -> dict:
    data = batch.to_dict()
    data["order_count"] = BatchService.count_orders(batch)
    return data


@bp.route("/")
@login_required
@admin_required
def index():
    """All batches, newest first."""
    return {
        "current_batch_id": BatchService.get_current_batch_id(),
        "batches": [_with_order_count(batch) for batch in BatchService.list_batches()],
        "legacy_order_count": BatchService.count_legacy_orders(),
    }


@bp.route("/current")
@login_required
@admin_required
def current():
    batch = BatchService.get_current_batch()
    return {"batch": _with_order_count(batch) if batch else None}


@bp.route("/<batch_id>")
@login_required
@admin_required
def detail(batch_id):
    batch = BatchService.get_batch(batch_id)
    if not batch:
        abort(404, description="Batch not found")
    return _with_order_count(batch)
