"""Domain models for the savings ledger."""

from savings_ledger.models.base import AdminProfile, Notification, NotificationPreferences

__all__ = ["AdminProfile", "Notification", "NotificationPreferences"]
