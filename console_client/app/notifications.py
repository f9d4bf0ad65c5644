"""
User-visible notifications (toasts) raised by the client data layer.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import time

from shared.logging import get_logger


@dataclass
class Notification:
    """One toast."""
    title: str
    description: str
    variant: str = "default"
    created_at: float = field(default_factory=time.time)


class Notifier:
    """Collects notifications and forwards them to an optional sink."""

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None, limit: int = 50):
        self.sink = sink
        self.limit = limit
        self.history: List[Notification] = []
        self.logger = get_logger("console_client.notifications")

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.history.append(notification)
        del self.history[:-self.limit]

        self.logger.info("Notification", title=title, description=description, variant=variant)
        if self.sink:
            self.sink(notification)
        return notification

    def error(self, title: str, description: str) -> Notification:
        return self.notify(title, description, variant="destructive")
