"""Decide whether the request form is open at a given instant.

The result carries a reason code and the instant it refers to rather than a
sentence, so callers can localize it. Nothing here touches the database.
"""

from dataclasses import dataclass
from datetime import datetime

from app.models.settings import IntakeSettings, OpenState
from app.utils import isoformat


class Reason:
    """Why the form is (or is not) open, relative to ``Availability.at``."""
    CLOSES_AT = "closes_at"
    OPENS_AT = "opens_at"
    CLOSED_AT = "closed_at"


_MESSAGES = {
    Reason.CLOSES_AT: "Closes at {at}",
    Reason.OPENS_AT: "Opens at {at}",
    Reason.CLOSED_AT: "Closed at {at}",
}


@dataclass(frozen=True)
class Availability:
    is_open: bool
    reason: str | None = None
    at: datetime | None = None

    def describe(self) -> str | None:
        """English fallback text for API consumers without translations."""
        if self.reason is None:
            return None
        return _MESSAGES[self.reason].format(at=isoformat(self.at))

    def to_dict(self) -> dict:
        return {
            "is_open": self.is_open,
            "reason": self.reason,
            "at": isoformat(self.at),
            "message": self.describe(),
        }


CLOSED = Availability(False)


def resolve(settings: IntakeSettings, now: datetime) -> Availability:
    """Resolve the form state. Manual override wins, then the schedule.

    Bounds are inclusive. A missing, partial or unparseable schedule counts
    as no schedule, which keeps the form closed unless manually opened.
    """
    schedule = settings.schedule

    if settings.manual_override is OpenState.OPEN:
        if schedule and now < schedule[1]:
            return Availability(True, Reason.CLOSES_AT, schedule[1])
        return Availability(True)

    if settings.manual_override is OpenState.CLOSED:
        return CLOSED

    if schedule is None:
        return CLOSED

    opens, closes = schedule
    if now < opens:
        return Availability(False, Reason.OPENS_AT, opens)
    if now <= closes:
        return Availability(True, Reason.CLOSES_AT, closes)
    return Availability(False, Reason.CLOSED_AT, closes)
