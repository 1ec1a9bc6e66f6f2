"""Order domain exports"""

from .models import ALLOWED_TRANSITIONS, TERMINAL_STATUSES, Order, OrderCreateInput, OrderStatus
from .processor import OrderProcessor
from .service import OrderOutcome, OrderService

__all__ = [
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "Order",
    "OrderCreateInput",
    "OrderStatus",
    "OrderProcessor",
    "OrderOutcome",
    "OrderService",
]
