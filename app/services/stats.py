from collections import Counter
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app
from sqlalchemy import func

from app import db
from app.models import Order, OrderStatus, PackingStage, PackingStatus, User, UserRole
from app.services.batches import BatchService
from app.services.orders import ALL_BATCHES, LEGACY_BATCH, filter_by_batch
from app.services.store import store_errors
from app.utils import isoformat


def week_start(day: date) -> date:
    """The Sunday on or before *day*."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def local_date(instant: datetime, tz) -> date:
    """Calendar date of a naive UTC instant in *tz*."""
    return instant.replace(tzinfo=timezone.utc).astimezone(tz).date()


class StatsService:
    """Service for calculating dashboard statistics."""

    @staticmethod
    def get_timezone():
        return ZoneInfo(current_app.config.get("STATS_TIMEZONE", "UTC"))

    @staticmethod
    def get_order_stats(batch_id=ALL_BATCHES) -> dict:
        """
        Get order counts, optionally for one batch.

        Returns dict with:
            - total: Number of orders
            - by_status: Count per order status (every status present)
            - packing: Per stage, count per packing status
        """
        with store_errors("Could not load order statistics."):
            status_rows = filter_by_batch(
                db.session.query(Order.status, func.count(Order.id)), batch_id
            ).group_by(Order.status).all()

            by_status = {status: 0 for status in OrderStatus.ALL}
            for status, count in status_rows:
                by_status[status] = count

            packing = {}
            for stage in PackingStage.ALL:
                column = getattr(Order, f"{stage}_status")
                rows = filter_by_batch(
                    db.session.query(column, func.count(Order.id)), batch_id
                ).group_by(column).all()
                counts = {status: 0 for status in PackingStatus.ALL}
                for status, count in rows:
                    counts[status] = count
                packing[stage] = counts

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "packing": packing,
        }

    @staticmethod
    def get_weekly_trend(now: datetime, days: int = None, tz=None) -> list[dict]:
        """Orders per week over the last *days* days, across all batches.

        Weeks start on Sunday in the dashboard timezone. Only weeks with
        orders are returned, oldest first.
        """
        if days is None:
            days = current_app.config.get("STATS_TREND_DAYS", 90)
        if tz is None:
            tz = StatsService.get_timezone()

        cutoff = now - timedelta(days=days)
        with store_errors("Could not load the weekly trend."):
            rows = db.session.query(Order.created_at).filter(Order.created_at >= cutoff).all()

        buckets = Counter(week_start(local_date(created_at, tz)) for (created_at,) in rows)
        return [
            {"week_start": isoformat(start), "count": buckets[start]}
            for start in sorted(buckets)
        ]

    @staticmethod
    def get_registration_stats(now: datetime) -> dict:
        """Requester accounts, in total and newly registered."""
        query = User.query.filter(User.role == UserRole.USER)
        with store_errors("Could not load registration statistics."):
            return {
                "total": query.count(),
                "last_7_days": query.filter(User.created_at >= now - timedelta(days=7)).count(),
                "last_30_days": query.filter(User.created_at >= now - timedelta(days=30)).count(),
            }

    @staticmethod
    def get_dashboard(now: datetime, batch_id=ALL_BATCHES) -> dict:
        """Everything the admin dashboard shows, with order counts for *batch_id*."""
        batch = None
        if batch_id not in (None, "", ALL_BATCHES, LEGACY_BATCH):
            batch = BatchService.get_batch(batch_id)

        return {
            "batch_id": batch_id or ALL_BATCHES,
            "batch": batch.to_dict() if batch else None,
            "current_batch_id": BatchService.get_current_batch_id(),
            "orders": StatsService.get_order_stats(batch_id),
            "weekly_trend": StatsService.get_weekly_trend(now),
            "registrations": StatsService.get_registration_stats(now),
        }
