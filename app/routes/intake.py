from flask import Blueprint

from app.services import IntakeService
from app.services.availability import resolve
from app.utils import isoformat, utcnow

bp = Blueprint("intake", __name__)


@bp.route("/settings")
def settings():
    """Public settings snapshot with the resolved form state."""
    now = utcnow()
    intake = IntakeService.get_settings()
    return {
        "settings": intake.to_dict(),
        "availability": resolve(intake, now).to_dict(),
        "server_time": isoformat(now),
    }


@bp.route("/availability")
def availability():
    """Whether the request form is open right now."""
    return IntakeService.get_availability(utcnow()).to_dict()
