from flask import Blueprint

from app.services import catalog

bp = Blueprint("catalog", __name__)


@bp.route("/")
def index():
    """Checklist items shown on the request form."""
    return {
        "sections": catalog.CATALOG,
        "fresh_sections": list(catalog.FRESH_SECTIONS),
    }
