"""initial contest schema

Revision ID: 001
Revises:
Create Date: 2026-03-02 10:14:07.512944

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "entries",
        sa.Column("contest_id", sa.Text(), nullable=False),
        sa.Column("entry_id", sa.Text(), nullable=False),
        sa.Column("locale", sa.Text(), server_default="en", nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("profile", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("consent", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("draw_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("reminder_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("contest_id", "entry_id", name=op.f("pk_entries")),
    )
    op.create_index(
        "idx_entries_created_at",
        "entries",
        ["contest_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "dedupe_markers",
        sa.Column("contest_id", sa.Text(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(
                "email",
                "phone",
                name="identity_kind",
                native_enum=False,
                create_constraint=True,
                length=16,
            ),
            nullable=False,
        ),
        sa.Column("identity_hash", sa.Text(), nullable=False),
        sa.Column("entry_id", sa.Text(), nullable=False),
        sa.Column("created_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["contest_id", "entry_id"],
            ["entries.contest_id", "entries.entry_id"],
            name=op.f("fk_dedupe_markers_contest_id_entries"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint(
            "contest_id", "kind", "identity_hash", name=op.f("pk_dedupe_markers")
        ),
    )
    op.create_index(
        "idx_dedupe_markers_entry",
        "dedupe_markers",
        ["contest_id", "entry_id"],
        unique=False,
    )

    op.create_table(
        "notification_log",
        sa.Column("log_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("contest_id", sa.Text(), nullable=False),
        sa.Column("entry_id", sa.Text(), nullable=False),
        sa.Column(
            "template",
            sa.Enum(
                "confirmation",
                "reminder",
                "draw",
                name="notification_template",
                native_enum=False,
                create_constraint=True,
                length=16,
            ),
            nullable=False,
        ),
        sa.Column("channel", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "sent",
                "failed",
                name="delivery_status",
                native_enum=False,
                create_constraint=True,
                length=16,
            ),
            nullable=False,
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "sent_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("log_id", name=op.f("pk_notification_log")),
    )
    op.create_index(
        "idx_notification_log_dedup",
        "notification_log",
        ["entry_id", "template", "status"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_notification_log_dedup", table_name="notification_log")
    op.drop_table("notification_log")
    op.drop_index("idx_dedupe_markers_entry", table_name="dedupe_markers")
    op.drop_table("dedupe_markers")
    op.drop_index("idx_entries_created_at", table_name="entries")
    op.drop_table("entries")
