"""Live status notifications."""

from solverhub.notifications.events import EventType, StatusEvent
from solverhub.notifications.hub import NotificationHub

__all__ = ["EventType", "NotificationHub", "StatusEvent"]
