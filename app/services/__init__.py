from app.services.batches import BatchService
from app.services.intake import IntakeService
from app.services.orders import OrderService
from app.services.stats import StatsService

__all__ = [
    "BatchService",
    "IntakeService",
    "OrderService",
    "StatsService",
]
