"""Change notification exports"""

from .notifier import ChangeNotifier, EventType, Subscription

__all__ = ["ChangeNotifier", "EventType", "Subscription"]
