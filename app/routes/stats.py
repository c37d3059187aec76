import csv
import io

from flask import Blueprint, request, Response
from flask_login import login_required

from app.models import admin_required
from app.services import OrderService, StatsService
from app.services.orders import ALL_BATCHES
from app.utils import utcnow

bp = Blueprint("stats", __name__)


@bp.route("/")
@login_required
@admin_required
def index():
    """Dashboard statistics, with order counts for the selected batch."""
    batch_id = request.args.get("batch", ALL_BATCHES)
    return StatsService.get_dashboard(utcnow(), batch_id)


@bp.route("/export-orders.csv")
@login_required
@admin_required
def export_orders_csv():
    """Download orders (optionally for one batch) as a CSV packing list."""
    batch_id = request.args.get("batch", ALL_BATCHES)
    orders = OrderService.list_orders(batch_id)

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([
        "order_id",
        "batch_id",
        "name",
        "email",
        "status",
        "pickup_date",
        "dry_goods",
        "dry_goods_status",
        "fresh_goods",
        "fresh_goods_status",
        "other_items",
        "gluten_free",
        "vegan",
        "baby_needs",
        "created_at",
    ])
    for o in orders:
        dietary = o.dietary_restrictions or {}
        baby = o.baby_needs or {}
        baby_needs = ""
        if baby.get("has_baby"):
            needs = baby.get("needs") or {}
            details = baby.get("details") or {}
            baby_needs = "; ".join(filter(None, [
                f"diapers {details.get('diaper_size', '')}".strip() if needs.get("diapers") else "",
                f"formula {details.get('formula_type', '')}".strip() if needs.get("formula") else "",
                details.get("other", ""),
            ]))
        writer.writerow([
            o.id,
            o.batch_id or "",
            o.user_name or "",
            o.user_email or "",
            o.status,
            o.pickup_date.isoformat() if o.pickup_date else "",
            ", ".join(o.dry_goods_items or []),
            o.dry_goods_status,
            ", ".join(o.fresh_goods_items or []),
            o.fresh_goods_status,
            o.items or "",
            dietary.get("gluten_free_count", 0),
            dietary.get("vegan_count", 0),
            baby_needs,
            o.created_at.strftime("%Y-%m-%d %H:%M") if o.created_at else "",
        ])

    filename = f"orders-{batch_id}-{utcnow().date().isoformat()}.csv"
    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
