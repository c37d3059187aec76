"""Short-lived bearer tokens for the JSON API."""

from flask import current_app
from itsdangerous import URLSafeTimedSerializer, SignatureExpired, BadSignature

_SALT = "api-token"


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=_SALT)


def issue_token(user) -> str:
    """Sign the user's id into a token."""
    return _serializer().dumps(user.id)


def verify_token(token: str) -> int | None:
    """Return the signed user id, or None if the token is expired or forged."""
    max_age = current_app.config.get("API_TOKEN_MAX_AGE", 3600)
    try:
        return int(_serializer().loads(token, max_age=max_age))
    except SignatureExpired:
        current_app.logger.info("Rejected expired API token")
        return None
    except (BadSignature, TypeError, ValueError):
        return None
