import logging
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.errors import DuplicateSubmissionError, IntakeClosedError, TransientStoreError, ValidationError
from app.models import Order, OrderStatus, PackingStage, PackingStatus
from app.services import catalog
from app.services.store import store_errors

logger = logging.getLogger(__name__)

# Batch filters accepted by list/stat queries besides a batch id
ALL_BATCHES = "all"
LEGACY_BATCH = "legacy"


def filter_by_batch(query, batch_id):
    """Restrict an Order query to one batch, to legacy orders, or not at all."""
    if batch_id in (None, "", ALL_BATCHES):
        return query
    if batch_id == LEGACY_BATCH:
        return query.filter(Order.batch_id.is_(None))
    return query.filter(Order.batch_id == batch_id)


def _count(value, field: str) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{field} must be a whole number.", {"field": field})
    try:
        count = int(value)
    except ValueError:
        raise ValidationError(f"{field} must be a whole number.", {"field": field}) from None
    if count < 0:
        raise ValidationError(f"{field} must not be negative.", {"field": field})
    return count


def _text(value, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text.", {"field": field})
    return value.strip()


def _section(value, field: str) -> dict:
    """An optional nested object of the form; absent means empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{field} must be an object.", {"field": field})
    return value


class OrderService:
    """Submission, duplicate guard and admin updates for orders."""

    @staticmethod
    def has_submitted(user_id: int, batch_id: str | None) -> bool:
        """True if the user already has an order in *batch_id*.

        ``None`` matches legacy orders only, never a real batch.
        """
        query = Order.query.filter(Order.user_id == user_id)
        if batch_id is None:
            query = query.filter(Order.batch_id.is_(None))
        else:
            query = query.filter(Order.batch_id == batch_id)
        with store_errors("Could not check for an existing request."):
            return db.session.query(query.exists()).scalar()

    @staticmethod
    def normalize_payload(payload: dict) -> dict:
        """Validate a request form payload and return the Order column values."""
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")

        if not payload.get("confirmed_pickup"):
            raise ValidationError("Please confirm the pickup date.", {"field": "confirmed_pickup"})

        selected = payload.get("selected_items") or []
        if not isinstance(selected, list) or not all(isinstance(i, str) for i in selected):
            raise ValidationError("selected_items must be a list of item keys.", {"field": "selected_items"})
        selected = list(dict.fromkeys(selected))
        unknown = catalog.unknown_items(selected)
        if unknown:
            raise ValidationError("Unknown items requested.", {"field": "selected_items", "items": unknown})
        dry, fresh = catalog.split_items(selected)

        dietary = _section(payload.get("dietary_restrictions"), "dietary_restrictions")
        has_restrictions = bool(dietary.get("has_restrictions"))
        dietary_restrictions = {
            "has_restrictions": has_restrictions,
            "gluten_free_count": _count(dietary.get("gluten_free_count"), "gluten_free_count") if has_restrictions else 0,
            "vegan_count": _count(dietary.get("vegan_count"), "vegan_count") if has_restrictions else 0,
        }

        baby = _section(payload.get("baby_needs"), "baby_needs")
        if baby.get("has_baby"):
            needs = _section(baby.get("needs"), "baby_needs.needs")
            details = _section(baby.get("details"), "baby_needs.details")
            diaper_size = _text(details.get("diaper_size"), "baby_needs.details.diaper_size")
            formula_type = _text(details.get("formula_type"), "baby_needs.details.formula_type")
            baby_needs = {
                "has_baby": True,
                "needs": {"diapers": bool(needs.get("diapers")), "formula": bool(needs.get("formula"))},
                "details": {
                    "diaper_size": diaper_size if needs.get("diapers") else "",
                    "formula_type": formula_type if needs.get("formula") else "",
                    "other": _text(details.get("other"), "baby_needs.details.other"),
                },
            }
        else:
            baby_needs = {"has_baby": False, "needs": None, "details": None}

        return {
            "items": _text(payload.get("items"), "items"),
            "selected_items": selected,
            "dry_goods_items": dry,
            "fresh_goods_items": fresh,
            "confirmed_pickup": True,
            "dietary_restrictions": dietary_restrictions,
            "baby_needs": baby_needs,
        }

    @staticmethod
    def submit(user, payload: dict, batch_id: str | None, now: datetime,
               pickup_date: date | None = None) -> Order:
        """Store a new order for *user* in *batch_id*.

        Raises DuplicateSubmissionError if the user already has one there,
        including when a concurrent submission wins the race to the insert.
        New orders always belong to a batch; only imported history is legacy.
        """
        if batch_id is None:
            raise IntakeClosedError("No distribution is open for requests yet.")

        values = OrderService.normalize_payload(payload)

        if OrderService.has_submitted(user.id, batch_id):
            logger.warning("Rejected duplicate order from user %s for batch %s", user.id, batch_id)
            raise DuplicateSubmissionError(user.id, batch_id)

        order = Order(
            user_id=user.id,
            batch_id=batch_id,
            status=OrderStatus.PENDING,
            user_email=user.email,
            user_name=user.full_name,
            pickup_date=pickup_date,
            dry_goods_status=PackingStatus.PENDING,
            fresh_goods_status=PackingStatus.PENDING,
            created_at=now,
            updated_at=now,
            **values,
        )
        db.session.add(order)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if OrderService.has_submitted(user.id, batch_id):
                logger.warning("Concurrent duplicate order from user %s for batch %s", user.id, batch_id)
                raise DuplicateSubmissionError(user.id, batch_id) from exc
            logger.exception("Failed to store order for user %s", user.id)
            raise TransientStoreError("Could not store the request.") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Failed to store order for user %s", user.id)
            raise TransientStoreError("Could not store the request.") from exc

        logger.info("Order %s submitted by user %s for batch %s", order.id, user.id, batch_id)
        return order

    @staticmethod
    def get_order(order_id: int) -> Order | None:
        with store_errors("Could not load the order."):
            return db.session.get(Order, order_id)

    @staticmethod
    def list_orders(batch_id=ALL_BATCHES) -> list[Order]:
        """Orders newest first, optionally for one batch or legacy orders only."""
        query = filter_by_batch(Order.query, batch_id)
        with store_errors("Could not load orders."):
            return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    @staticmethod
    def orders_for_user(user_id: int) -> list[Order]:
        with store_errors("Could not load orders."):
            return (
                Order.query.filter_by(user_id=user_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
                .all()
            )

    @staticmethod
    def set_status(order: Order, status: str, now: datetime) -> Order:
        """Mark an order PENDING or COMPLETED. Either direction is allowed."""
        if status not in OrderStatus.ALL:
            raise ValidationError(
                f"Status must be one of: {', '.join(OrderStatus.ALL)}.", {"field": "status"}
            )
        if order.status != status:
            order.status = status
            order.status_updated_at = now
            order.updated_at = now
            OrderService._commit(order)
            logger.info("Order %s marked %s", order.id, status)
        return order

    @staticmethod
    def set_packing_status(order: Order, stage: str, status: str, now: datetime) -> Order:
        """Update the packing status of one fulfilment stage."""
        if stage not in PackingStage.ALL:
            raise ValidationError(
                f"Stage must be one of: {', '.join(PackingStage.ALL)}.", {"field": "stage"}
            )
        if status not in PackingStatus.ALL:
            raise ValidationError(
                f"Packing status must be one of: {', '.join(PackingStatus.ALL)}.", {"field": "status"}
            )
        column = f"{stage}_status"
        if getattr(order, column) != status:
            setattr(order, column, status)
            order.updated_at = now
            OrderService._commit(order)
            logger.info("Order %s %s marked %s", order.id, stage, status)
        return order

    @staticmethod
    def _commit(order: Order) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Failed to update order %s", order.id)
            raise TransientStoreError("Could not update the order.") from exc
