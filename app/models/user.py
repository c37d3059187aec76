from functools import wraps

from flask import abort
from flask_login import UserMixin, current_user
from werkzeug.security import generate_password_hash, check_password_hash

from app import db, login_manager
from app.utils import utcnow


class UserRole:
    """User role constants."""
    USER = "USER"
    ADMIN = "ADMIN"

    CHOICES = [
        (USER, "Requester"),
        (ADMIN, "Administrator"),
    ]


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    address = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    county = db.Column(db.String(100))
    food_bank_id = db.Column(db.String(50))
    family_size = db.Column(db.Integer)
    role = db.Column(db.String(20), default=UserRole.USER, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    # Relationships
    orders = db.relationship("Order", back_populates="user", lazy="dynamic")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    @property
    def full_name(self):
        return " ".join(filter(None, [self.first_name, self.last_name]))

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def role_display(self):
        for value, label in UserRole.CHOICES:
            if value == self.role:
                return label
        return self.role

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.full_name,
            "address": self.address,
            "phone": self.phone,
            "county": self.county,
            "food_bank_id": self.food_bank_id,
            "family_size": self.family_size,
            "role": self.role,
            "role_display": self.role_display,
        }

    def __repr__(self):
        return f"<User {self.email}>"


def admin_required(f):
    """Decorator to require admin role for a route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not current_user.is_admin:
            abort(403, description="You don't have permission to access this resource.")
        return f(*args, **kwargs)
    return decorated_function


@login_manager.user_loader
def load_user(id):
    user = db.session.get(User, int(id))
    return user if user and user.is_active else None


@login_manager.request_loader
def load_user_from_request(request):
    """Authenticate API calls carrying ``Authorization: Bearer <token>``."""
    from app.services.tokens import verify_token

    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    user_id = verify_token(header[len("Bearer "):].strip())
    if user_id is None:
        return None
    return load_user(user_id)


@login_manager.unauthorized_handler
def unauthorized():
    abort(401, description="Authentication required.")
