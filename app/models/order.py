from app import db
from app.utils import isoformat


class OrderStatus:
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"

    ALL = (PENDING, COMPLETED)


class PackingStatus:
    PENDING = "PENDING"
    PACKED = "PACKED"

    ALL = (PENDING, PACKED)


class PackingStage:
    """Fulfilment stages that are packed separately."""
    DRY_GOODS = "dry_goods"
    FRESH_GOODS = "fresh_goods"

    ALL = (DRY_GOODS, FRESH_GOODS)


class Order(db.Model):
    """Food requests - one per requester per batch."""

    __tablename__ = "orders"
    __table_args__ = (
        # NULL batch_id (legacy orders) never collides
        db.UniqueConstraint("user_id", "batch_id", name="uq_orders_user_batch"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    batch_id = db.Column(db.String(64), db.ForeignKey("batches.id"), nullable=True, index=True)
    status = db.Column(db.String(20), default=OrderStatus.PENDING, nullable=False)

    # Requester snapshot at submission time
    user_email = db.Column(db.String(120))
    user_name = db.Column(db.String(200))

    # Request contents
    items = db.Column(db.Text)
    selected_items = db.Column(db.JSON, default=list)
    dry_goods_items = db.Column(db.JSON, default=list)
    fresh_goods_items = db.Column(db.JSON, default=list)
    pickup_date = db.Column(db.Date)
    confirmed_pickup = db.Column(db.Boolean, default=False, nullable=False)
    dietary_restrictions = db.Column(db.JSON)
    baby_needs = db.Column(db.JSON)

    # Packing progress per stage
    dry_goods_status = db.Column(db.String(20), default=PackingStatus.PENDING, nullable=False)
    fresh_goods_status = db.Column(db.String(20), default=PackingStatus.PENDING, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime)
    status_updated_at = db.Column(db.DateTime)

    # Relationships
    user = db.relationship("User", back_populates="orders")
    batch = db.relationship("Batch", back_populates="orders")

    @property
    def is_legacy(self):
        return self.batch_id is None

    @property
    def is_completed(self):
        return self.status == OrderStatus.COMPLETED

    @property
    def packing_status(self):
        return {
            PackingStage.DRY_GOODS: self.dry_goods_status,
            PackingStage.FRESH_GOODS: self.fresh_goods_status,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "batch_id": self.batch_id,
            "status": self.status,
            "user_email": self.user_email,
            "user_name": self.user_name,
            "items": self.items,
            "selected_items": self.selected_items or [],
            "dry_goods_items": self.dry_goods_items or [],
            "fresh_goods_items": self.fresh_goods_items or [],
            "pickup_date": isoformat(self.pickup_date),
            "confirmed_pickup": self.confirmed_pickup,
            "dietary_restrictions": self.dietary_restrictions,
            "baby_needs": self.baby_needs,
            "packing_status": self.packing_status,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Order {self.id} user={self.user_id} batch={self.batch_id} ({self.status})>"
