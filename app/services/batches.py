import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.errors import TransientStoreError
from app.models import Batch, BatchStatus, IntakeKeys, Order, Settings
from app.services.store import store_errors

logger = logging.getLogger(__name__)


def make_batch_id(now: datetime) -> str:
    """Time-derived id, e.g. ``BATCH_2024-03-10T12-00-00-000000Z``."""
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S.%f") + "Z"
    return "BATCH_" + stamp.replace(":", "-").replace(".", "-")


def make_batch_name(origin: str, now: datetime) -> str:
    return f"Batch {now.month}/{now.day}/{now.year} ({origin})"


class BatchService:
    """Distribution cycles and the current-batch pointer."""

    @staticmethod
    def _unique_batch_id(now: datetime) -> str:
        base = make_batch_id(now)
        candidate, n = base, 1
        while db.session.get(Batch, candidate) is not None:
            n += 1
            candidate = f"{base}-{n}"
        return candidate

    @staticmethod
    def start_new_batch(origin: str, start_date: datetime, now: datetime, commit: bool = True) -> str:
        """Create an OPEN batch and make it the current one.

        The batch row and the settings pointer are written in the same
        transaction. With ``commit=False`` the caller owns the commit (and the
        rollback on failure).
        """
        try:
            batch = Batch(
                id=BatchService._unique_batch_id(now),
                name=make_batch_name(origin, now),
                start_date=start_date,
                origin=origin,
                status=BatchStatus.OPEN,
                created_at=now,
            )
            db.session.add(batch)
            Settings.set(IntakeKeys.CURRENT_BATCH_ID, batch.id, commit=False)
            if commit:
                db.session.commit()
        except SQLAlchemyError as exc:
            if not commit:
                raise
            db.session.rollback()
            logger.exception("Failed to start a new %s batch", origin)
            raise TransientStoreError("Could not start a new batch.") from exc

        if commit:
            logger.info("Started batch %s (%s)", batch.id, origin)
        return batch.id

    @staticmethod
    def get_current_batch_id() -> str | None:
        """The current batch id, or None when no batch has been started yet."""
        with store_errors("Could not load the current batch."):
            return Settings.get_current_batch_id()

    @staticmethod
    def get_current_batch() -> Batch | None:
        batch_id = BatchService.get_current_batch_id()
        return BatchService.get_batch(batch_id) if batch_id else None

    @staticmethod
    def get_batch(batch_id: str) -> Batch | None:
        with store_errors("Could not load the batch."):
            return db.session.get(Batch, batch_id)

    @staticmethod
    def list_batches() -> list[Batch]:
        """All batches, newest first."""
        with store_errors("Could not load batches."):
            return Batch.query.order_by(Batch.created_at.desc(), Batch.id.desc()).all()

    @staticmethod
    def count_orders(batch: Batch) -> int:
        with store_errors("Could not count orders."):
            return batch.orders.count()

    @staticmethod
    def count_legacy_orders() -> int:
        """Orders placed before batches existed."""
        with store_errors("Could not count orders."):
            return Order.query.filter(Order.batch_id.is_(None)).count()
