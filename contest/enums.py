"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class IdentityKind(str, enum.Enum):
    email = "email"
    phone = "phone"


class NotificationTemplate(str, enum.Enum):
    confirmation = "confirmation"
    reminder = "reminder"
    draw = "draw"


class DeliveryStatus(str, enum.Enum):
    sent = "sent"
    failed = "failed"


# Deferred kinds, in registration order
DEFERRED_TEMPLATES = (NotificationTemplate.reminder, NotificationTemplate.draw)

SUPPORTED_LOCALES = ("en", "fr")
DEFAULT_LOCALE = "en"


# =====================================================
# SQLAlchemy Enum Types
# Stored as VARCHAR + CHECK so the same schema runs on SQLite in tests
# =====================================================

identity_kind_enum = SQLEnum(
    IdentityKind,
    name="identity_kind",
    native_enum=False,
    create_constraint=True,
    length=16,
)
notification_template_enum = SQLEnum(
    NotificationTemplate,
    name="notification_template",
    native_enum=False,
    create_constraint=True,
    length=16,
)
delivery_status_enum = SQLEnum(
    DeliveryStatus,
    name="delivery_status",
    native_enum=False,
    create_constraint=True,
    length=16,
)
