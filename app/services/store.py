"""Shared handling for database failures in service reads."""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.errors import TransientStoreError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(message: str):
    """Turn a SQLAlchemy failure inside the block into a TransientStoreError.

    The session is rolled back so the request can still render its error.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception(message)
        raise TransientStoreError(message) from exc
