import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from app import db
from app.utils import isoformat, parse_date, parse_instant

logger = logging.getLogger(__name__)


class OpenState(str, Enum):
    """Admin manual override for the request form."""

    OPEN = "open"
    CLOSED = "closed"
    FOLLOW_SCHEDULE = "follow_schedule"


class IntakeKeys:
    """Settings keys that make up the intake configuration."""

    MANUAL_OVERRIDE = "intake_manual_override"
    SCHEDULED_OPEN = "intake_scheduled_open"
    SCHEDULED_CLOSE = "intake_scheduled_close"
    NEXT_PICKUP_DATE = "intake_next_pickup_date"
    CURRENT_BATCH_ID = "intake_current_batch_id"


@dataclass(frozen=True)
class IntakeSettings:
    """Immutable snapshot of the intake configuration."""

    manual_override: OpenState = OpenState.FOLLOW_SCHEDULE
    scheduled_open: datetime | None = None
    scheduled_close: datetime | None = None
    next_pickup_date: date | None = None
    current_batch_id: str | None = None

    @property
    def schedule(self) -> tuple[datetime, datetime] | None:
        """The (open, close) window, or None unless both bounds are usable."""
        if self.scheduled_open is None or self.scheduled_close is None:
            return None
        if self.scheduled_close < self.scheduled_open:
            return None
        return self.scheduled_open, self.scheduled_close

    def to_dict(self) -> dict:
        return {
            "manual_override": self.manual_override.value,
            "scheduled_open": isoformat(self.scheduled_open),
            "scheduled_close": isoformat(self.scheduled_close),
            "next_pickup_date": isoformat(self.next_pickup_date),
            "current_batch_id": self.current_batch_id,
        }


class Settings(db.Model):
    """Application settings stored in the database."""

    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    @classmethod
    def get(cls, key: str, default: str = None) -> str:
        """Get a setting value by key."""
        setting = cls.query.filter_by(key=key).first()
        return setting.value if setting else default

    @classmethod
    def set(cls, key: str, value: str, commit: bool = True) -> None:
        """Set a setting value."""
        setting = cls.query.filter_by(key=key).first()
        if setting:
            setting.value = value
        else:
            setting = cls(key=key, value=value)
            db.session.add(setting)
        if commit:
            db.session.commit()

    @classmethod
    def set_many(cls, values: dict, commit: bool = True) -> None:
        """Merge several key/value pairs in one transaction."""
        for key, value in values.items():
            cls.set(key, value, commit=False)
        if commit:
            db.session.commit()

    # ------------------------------------------------------------------
    # Intake settings
    # ------------------------------------------------------------------

    @classmethod
    def get_manual_override(cls) -> OpenState:
        """Get the manual override; unknown stored values read as CLOSED."""
        value = cls.get(IntakeKeys.MANUAL_OVERRIDE)
        if value is None:
            return OpenState.FOLLOW_SCHEDULE
        try:
            return OpenState(value)
        except ValueError:
            logger.warning("Unknown manual override %r, treating form as closed", value)
            return OpenState.CLOSED

    @classmethod
    def get_current_batch_id(cls) -> str | None:
        return cls.get(IntakeKeys.CURRENT_BATCH_ID) or None

    @classmethod
    def get_intake_settings(cls) -> IntakeSettings:
        """Load the intake configuration as a typed snapshot."""
        return IntakeSettings(
            manual_override=cls.get_manual_override(),
            scheduled_open=parse_instant(cls.get(IntakeKeys.SCHEDULED_OPEN)),
            scheduled_close=parse_instant(cls.get(IntakeKeys.SCHEDULED_CLOSE)),
            next_pickup_date=parse_date(cls.get(IntakeKeys.NEXT_PICKUP_DATE)),
            current_batch_id=cls.get_current_batch_id(),
        )

    def __repr__(self):
        return f"<Settings {self.key}={self.value}>"
