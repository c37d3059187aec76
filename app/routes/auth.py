from flask import Blueprint, abort, current_app, request
from flask_login import login_user, logout_user, login_required, current_user

from app import db
from app.errors import ValidationError
from app.models import User
from app.services.tokens import issue_token
from app.utils import is_valid_email, is_valid_phone

bp = Blueprint("auth", __name__)


def _token_response(user) -> dict:
    return {
        "user": user.to_dict(),
        "token": issue_token(user),
        "expires_in": current_app.config["API_TOKEN_MAX_AGE"],
    }


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()

    if user and user.is_active and user.check_password(password):
        login_user(user)
        return _token_response(user)

    abort(401, description="Invalid email or password")


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return {"ok": True}


@bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    phone = (data.get("phone") or "").strip()

    if not is_valid_email(email):
        raise ValidationError("Invalid email address.", {"field": "email"})
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters.", {"field": "password"})
    if not is_valid_phone(phone):
        raise ValidationError("Invalid phone number.", {"field": "phone"})

    family_size = data.get("family_size")
    if family_size not in (None, ""):
        try:
            family_size = int(family_size)
        except (TypeError, ValueError):
            raise ValidationError("Family size must be a number.", {"field": "family_size"}) from None
        if family_size < 1:
            raise ValidationError("Family size must be at least 1.", {"field": "family_size"})
    else:
        family_size = None

    if User.query.filter_by(email=email).first():
        abort(409, description="Email already registered")

    user = User(
        email=email,
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        address=data.get("address"),
        phone=phone,
        county=data.get("county"),
        food_bank_id=data.get("food_bank_id"),
        family_size=family_size,
    )
    user.set_password(password)

    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Registered user %s", user.id)

    login_user(user)
    return _token_response(user), 201


@bp.route("/token", methods=["POST"])
@login_required
def token():
    """Issue a fresh bearer token for the signed-in user."""
    return _token_response(current_user)


@bp.route("/profile")
@login_required
def profile():
    return current_user.to_dict()
