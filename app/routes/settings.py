from flask import Blueprint, request
from flask_login import login_required

from app.errors import ValidationError
from app.models import admin_required
from app.services import BatchService, IntakeService
from app.services.availability import resolve
from app.utils import utcnow

bp = Blueprint("settings", __name__)


def _submitted_data() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _response(result, now) -> dict:
    body = result.to_dict()
    body["availability"] = resolve(result.settings, now).to_dict()
    return body


@bp.route("/", methods=["GET", "POST"])
@login_required
@admin_required
def index():
    """Intake settings: manual override, schedule and pickup date."""
    now = utcnow()

    if request.method == "POST":
        changes = IntakeService.parse_changes(_submitted_data())
        if not changes:
            raise ValidationError("Nothing to save.")
        return _response(IntakeService.save_settings(changes, now), now)

    intake = IntakeService.get_settings()
    current_batch = BatchService.get_current_batch()
    return {
        "settings": intake.to_dict(),
        "availability": resolve(intake, now).to_dict(),
        "current_batch": current_batch.to_dict() if current_batch else None,
    }


@bp.route("/override", methods=["POST"])
@login_required
@admin_required
def override():
    """Open or close the form manually, or hand control back to the schedule."""
    data = _submitted_data()
    changes = IntakeService.parse_changes({"manual_override": data.get("state")})
    now = utcnow()
    return _response(IntakeService.set_manual_override(changes["manual_override"], now), now)
