"""Administrative models shared across the ledger."""

from dataclasses import dataclass, field
from datetime import datetime

from savings_ledger.models.ledger.enums import (
    NotificationCategory,
    NotificationPriority,
    NotificationType,
)


@dataclass
class NotificationPreferences:
    """Channels the administrator wants to be notified on."""

    email: bool = True
    push: bool = False
    desktop: bool = True


@dataclass
class AdminProfile:
    """Profile of the administrator operating the ledger."""

    name: str = "Admin User"
    email: str = "admin@example.com"
    role: str = "System Administrator"
    avatar: str | None = None
    last_login: datetime | None = None
    two_factor_enabled: bool = False
    notification_preferences: NotificationPreferences = field(
        default_factory=NotificationPreferences
    )


@dataclass
class Notification:
    """Message shown in the administrator's notification center."""

    notification_id: str
    title: str
    message: str
    notification_type: NotificationType
    date: datetime
    read: bool = False
    link: str | None = None
    category: NotificationCategory | None = None
    priority: NotificationPriority | None = None
