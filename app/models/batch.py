from app import db
from app.utils import isoformat


class BatchOrigin:
    """What opened the batch."""
    MANUAL = "MANUAL"
    SCHEDULED = "SCHEDULED"

    CHOICES = [
        (MANUAL, "Opened manually"),
        (SCHEDULED, "Opened by schedule"),
    ]


class BatchStatus:
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class Batch(db.Model):
    """Distribution cycles - every order placed while a batch is current belongs to it."""

    __tablename__ = "batches"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    start_date = db.Column(db.DateTime, nullable=False)
    origin = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), default=BatchStatus.OPEN, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False)

    # Relationships
    orders = db.relationship("Order", back_populates="batch", lazy="dynamic")

    @property
    def origin_display(self):
        for value, label in BatchOrigin.CHOICES:
            if value == self.origin:
                return label
        return self.origin

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "start_date": isoformat(self.start_date),
            "origin": self.origin,
            "origin_display": self.origin_display,
            "status": self.status,
            "created_at": isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Batch {self.id} ({self.origin})>"
