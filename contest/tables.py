"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKeyConstraint,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from .enums import (
    delivery_status_enum,
    identity_kind_enum,
    notification_template_enum,
)

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
ProfileJSON = JSON().with_variant(JSONB(), "postgresql")


# =====================================================
# 1. ENTRIES
# =====================================================
# Append-only register of accepted entries. Rows are never updated.
entries = Table(
    "entries",
    metadata,
    Column("contest_id", Text, nullable=False),
    Column("entry_id", Text, nullable=False),  # UUID4 string
    Column("locale", Text, nullable=False, server_default="en"),
    Column("email", Text, nullable=False),  # normalized
    Column("phone", Text, nullable=False),  # normalized
    Column("profile", ProfileJSON, nullable=False),  # firstName, lastName, address...
    Column("consent", Boolean, nullable=False, server_default="false"),
    Column("draw_at", DateTime(timezone=True), nullable=False),
    Column("reminder_at", DateTime(timezone=True), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("contest_id", "entry_id"),
    Index("idx_entries_created_at", "contest_id", "created_at"),
)


# =====================================================
# 2. DEDUPE_MARKERS
# =====================================================
# One row per (contest, kind, identity hash), ever. The primary key is the
# conditional write that makes admission mutually exclusive.
dedupe_markers = Table(
    "dedupe_markers",
    metadata,
    Column("contest_id", Text, nullable=False),
    Column("kind", identity_kind_enum, nullable=False),
    Column("identity_hash", Text, nullable=False),  # sha256(salt:value) hex
    Column("entry_id", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("contest_id", "kind", "identity_hash"),
    ForeignKeyConstraint(
        ["contest_id", "entry_id"],
        ["entries.contest_id", "entries.entry_id"],
        ondelete="CASCADE",
    ),
    Index("idx_dedupe_markers_entry", "contest_id", "entry_id"),
)


# =====================================================
# 3. NOTIFICATION_LOG
# =====================================================
notification_log = Table(
    "notification_log",
    metadata,
    Column("log_id", Integer, primary_key=True, autoincrement=True),
    Column("contest_id", Text, nullable=False),
    Column("entry_id", Text, nullable=False),
    Column("template", notification_template_enum, nullable=False),
    Column("channel", Text, nullable=False),  # "email"
    Column("status", delivery_status_enum, nullable=False),
    Column("error_message", Text),  # Why it failed (if applicable)
    Column("sent_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_notification_log_dedup", "entry_id", "template", "status"),
)
