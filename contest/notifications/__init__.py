"""
Notification system for contest emails.

Public API:
    ConfirmationNotifier.send(entry) - Send the entry confirmation now
    DeferredScheduler.schedule_entry(entry) - Schedule reminder + draw-day emails
    NotificationDispatcher.dispatch(payload) - Send a deferred email when its job fires
    init_scheduler(database_url) / shutdown_scheduler(scheduler) - Lifecycle
"""

from .confirmation import ConfirmationNotifier
from .dispatcher import (
    NotificationDispatcher,
    register_dispatcher,
    run_scheduled_notification,
)
from .scheduler import (
    DeferredScheduler,
    ScheduledNotification,
    format_fire_time,
    init_scheduler,
    schedule_name,
    shutdown_scheduler,
)

__all__ = [
    "ConfirmationNotifier",
    "DeferredScheduler",
    "NotificationDispatcher",
    "ScheduledNotification",
    "format_fire_time",
    "init_scheduler",
    "register_dispatcher",
    "run_scheduled_notification",
    "schedule_name",
    "shutdown_scheduler",
]
