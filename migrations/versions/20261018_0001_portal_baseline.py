"""portal baseline: runs, stages, guitars, notes, invoices, notifications

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_accounts",
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(32), nullable=True),
        sa.Column("disabled", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("idx_user_accounts_email", "user_accounts", ["email"])

    op.create_table(
        "client_profiles",
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("alternate_email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(64), nullable=True),
        sa.Column("assigned_run_ids", sa.JSON(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uid"),
    )

    op.create_table(
        "runs",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("factory", sa.String(64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "run_stages",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("internal_only", sa.Boolean(), nullable=False),
        sa.Column("requires_note", sa.Boolean(), nullable=False),
        sa.Column("requires_photo", sa.Boolean(), nullable=False),
        sa.Column("client_status_label", sa.String(200), nullable=True),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("run_id", "order", name="uq_run_stages_run_order"),
    )
    op.create_index("ix_run_stages_run_id", "run_stages", ["run_id"])

    op.create_table(
        "guitars",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("stage_id", sa.String(64), nullable=False),
        sa.Column("client_uid", sa.String(128), nullable=True),
        sa.Column("customer_name", sa.String(200), nullable=True),
        sa.Column("customer_email", sa.String(320), nullable=True),
        sa.Column("order_number", sa.String(64), nullable=False),
        sa.Column("model", sa.String(200), nullable=False),
        sa.Column("finish", sa.String(200), nullable=False),
        sa.Column("serial", sa.String(64), nullable=True),
        sa.Column("specs", sa.JSON(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"]),
        sa.ForeignKeyConstraint(["stage_id"], ["run_stages.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_guitars_run_stage", "guitars", ["run_id", "stage_id"])
    op.create_index("idx_guitars_client", "guitars", ["client_uid"])

    op.create_table(
        "guitar_notes",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("guitar_id", sa.String(64), nullable=False),
        sa.Column("stage_id", sa.String(64), nullable=False),
        sa.Column("author_uid", sa.String(128), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("note_type", sa.String(32), nullable=False),
        sa.Column("visible_to_client", sa.Boolean(), nullable=False),
        sa.Column("photo_urls", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["guitar_id"], ["guitars.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_guitar_notes_guitar_stage", "guitar_notes", ["guitar_id", "stage_id"])

    op.create_table(
        "note_comments",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("guitar_id", sa.String(64), nullable=False),
        sa.Column("note_id", sa.String(64), nullable=False),
        sa.Column("author_uid", sa.String(128), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["guitar_id"], ["guitars.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["note_id"], ["guitar_notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_note_comments_note_id", "note_comments", ["note_id"])

    op.create_table(
        "run_updates",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("author_uid", sa.String(128), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=True),
        sa.Column("visible_to_clients", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_run_updates_run_id", "run_updates", ["run_id"])

    op.create_table(
        "run_update_comments",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("run_id", sa.String(64), nullable=False),
        sa.Column("update_id", sa.String(64), nullable=False),
        sa.Column("author_uid", sa.String(128), nullable=False),
        sa.Column("author_name", sa.String(200), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["update_id"], ["run_updates.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_run_update_comments_update_id", "run_update_comments", ["update_id"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("client_uid", sa.String(128), nullable=False),
        sa.Column("guitar_id", sa.String(64), nullable=True),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("payments", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["guitar_id"], ["guitars.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_invoices_client", "invoices", ["client_uid"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("type", sa.String(64), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("guitar_id", sa.String(64), nullable=True),
        sa.Column("run_id", sa.String(64), nullable=True),
        sa.Column("note_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("idx_invoices_client", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("ix_run_update_comments_update_id", table_name="run_update_comments")
    op.drop_table("run_update_comments")

    op.drop_index("ix_run_updates_run_id", table_name="run_updates")
    op.drop_table("run_updates")

    op.drop_index("ix_note_comments_note_id", table_name="note_comments")
    op.drop_table("note_comments")

    op.drop_index("idx_guitar_notes_guitar_stage", table_name="guitar_notes")
    op.drop_table("guitar_notes")

    op.drop_index("idx_guitars_client", table_name="guitars")
    op.drop_index("idx_guitars_run_stage", table_name="guitars")
    op.drop_table("guitars")

    op.drop_index("ix_run_stages_run_id", table_name="run_stages")
    op.drop_table("run_stages")

    op.drop_table("runs")
    op.drop_table("client_profiles")

    op.drop_index("idx_user_accounts_email", table_name="user_accounts")
    op.drop_table("user_accounts")
