"""Admin workflow for the intake settings.

Every write to the intake keys goes through ``IntakeService.save_settings`` so
that opening the form or moving the scheduled opening always starts a batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.errors import ConfigurationError, TransientStoreError, ValidationError
from app.models import BatchOrigin, IntakeKeys, IntakeSettings, OpenState, Settings
from app.services.availability import Availability, resolve
from app.services.batches import BatchService
from app.services.store import store_errors
from app.utils import isoformat, parse_date, parse_instant

logger = logging.getLogger(__name__)

SCHEDULE_WITHOUT_PICKUP_DATE = "schedule_without_pickup_date"


@dataclass
class SaveResult:
    settings: IntakeSettings
    batch_id: str | None = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "settings": self.settings.to_dict(),
            "new_batch_id": self.batch_id,
            "warnings": self.warnings,
        }


class IntakeService:
    """Read and update the intake configuration."""

    @staticmethod
    def get_settings() -> IntakeSettings:
        with store_errors("Could not load settings."):
            return Settings.get_intake_settings()

    @staticmethod
    def get_availability(now: datetime) -> Availability:
        return resolve(IntakeService.get_settings(), now)

    @staticmethod
    def parse_changes(data: dict) -> dict:
        """Turn submitted admin fields into typed changes.

        Only keys present in *data* are returned. Empty strings clear a value.
        Unlike stored values, bad admin input is rejected instead of ignored.
        """
        changes = {}

        if "manual_override" in data:
            try:
                changes["manual_override"] = OpenState(data["manual_override"])
            except ValueError:
                raise ValidationError(
                    "Manual override must be one of: open, closed, follow_schedule.",
                    {"field": "manual_override"},
                ) from None

        for name in ("scheduled_open", "scheduled_close"):
            if name in data:
                raw = data[name]
                value = parse_instant(raw)
                if raw not in (None, "") and value is None:
                    raise ConfigurationError(f"{name} is not a valid timestamp.", {"field": name})
                changes[name] = value

        if "next_pickup_date" in data:
            raw = data["next_pickup_date"]
            value = parse_date(raw)
            if raw not in (None, "") and value is None:
                raise ValidationError("next_pickup_date is not a valid date.", {"field": "next_pickup_date"})
            changes["next_pickup_date"] = value

        return changes

    @staticmethod
    def save_settings(changes: dict, now: datetime) -> SaveResult:
        """Merge *changes* into the stored settings, starting a batch when needed.

        A batch starts when the override moves into OPEN (MANUAL, starting
        now) or, failing that, when ``scheduled_open`` is set to a value that
        differs from the stored one (SCHEDULED, starting at that instant).
        At most one batch is started per save.
        """
        previous = IntakeService.get_settings()

        override = changes.get("manual_override", previous.manual_override)
        scheduled_open = changes.get("scheduled_open", previous.scheduled_open)
        scheduled_close = changes.get("scheduled_close", previous.scheduled_close)
        next_pickup_date = changes.get("next_pickup_date", previous.next_pickup_date)

        values = {IntakeKeys.MANUAL_OVERRIDE: override.value}

        if "scheduled_open" in changes or "scheduled_close" in changes:
            if (scheduled_open is None) != (scheduled_close is None):
                raise ConfigurationError(
                    "Set both the opening and closing time, or neither.",
                    {"scheduled_open": isoformat(scheduled_open), "scheduled_close": isoformat(scheduled_close)},
                )
            if scheduled_open is not None and scheduled_close < scheduled_open:
                raise ConfigurationError(
                    "The closing time must not be before the opening time.",
                    {"scheduled_open": isoformat(scheduled_open), "scheduled_close": isoformat(scheduled_close)},
                )
            values[IntakeKeys.SCHEDULED_OPEN] = isoformat(scheduled_open) or ""
            values[IntakeKeys.SCHEDULED_CLOSE] = isoformat(scheduled_close) or ""

        if "next_pickup_date" in changes:
            values[IntakeKeys.NEXT_PICKUP_DATE] = isoformat(next_pickup_date) or ""

        batch_id = None
        try:
            Settings.set_many(values, commit=False)

            if override is OpenState.OPEN and previous.manual_override is not OpenState.OPEN:
                batch_id = BatchService.start_new_batch(BatchOrigin.MANUAL, now, now, commit=False)
            elif (
                "scheduled_open" in changes
                and scheduled_open is not None
                and scheduled_open != previous.scheduled_open
            ):
                batch_id = BatchService.start_new_batch(
                    BatchOrigin.SCHEDULED, scheduled_open, now, commit=False
                )

            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Failed to save intake settings")
            raise TransientStoreError("Could not save settings.") from exc

        if batch_id:
            logger.info("Started batch %s", batch_id)
        logger.info("Intake settings saved: %s", ", ".join(sorted(values)))

        warnings = []
        if scheduled_open is not None and next_pickup_date is None:
            warnings.append(SCHEDULE_WITHOUT_PICKUP_DATE)

        return SaveResult(Settings.get_intake_settings(), batch_id, warnings)

    @staticmethod
    def set_manual_override(state: OpenState, now: datetime) -> SaveResult:
        """Admin toggle: open, close or hand control back to the schedule."""
        return IntakeService.save_settings({"manual_override": state}, now)
