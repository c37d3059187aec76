from app.models.user import User, UserRole, admin_required
from app.models.batch import Batch, BatchOrigin, BatchStatus
from app.models.order import Order, OrderStatus, PackingStage, PackingStatus
from app.models.settings import Settings, IntakeKeys, IntakeSettings, OpenState

__all__ = [
    "User",
    "UserRole",
    "admin_required",
    "Batch",
    "BatchOrigin",
    "BatchStatus",
    "Order",
    "OrderStatus",
    "PackingStage",
    "PackingStatus",
    "Settings",
    "IntakeKeys",
    "IntakeSettings",
    "OpenState",
]
