"""Create journal schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates users, sessions, oauth_clients, oauth_tokens,
       journal_entries and attachments.
How:   Ids are UUID text (String(36)) generated by the application;
       timestamps are TIMESTAMP WITH TIME ZONE. Foreign keys carry no
       ON DELETE action: dependents are removed by the cascade service.

Rollback: downgrade() drops every table in reverse dependency order.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("password_hash", sa.String(255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("token", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("expires_at"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("token", name="uq_sessions_token"),
    )
    op.create_index("idx_sessions_user_id", "sessions", ["user_id"])

    op.create_table(
        "oauth_clients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("client_id", sa.String(255), nullable=False),
        sa.Column("client_secret", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("redirect_uris", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("client_id", name="uq_oauth_clients_client_id"),
    )

    op.create_table(
        "oauth_tokens",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("access_token", sa.String(255), nullable=False),
        sa.Column("refresh_token", sa.String(255), nullable=True),
        sa.Column(
            "client_id", sa.String(36), sa.ForeignKey("oauth_clients.id"), nullable=False
        ),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("scope", sa.Text(), nullable=True),
        _timestamp("expires_at"),
        _timestamp("created_at"),
        sa.UniqueConstraint("access_token", name="uq_oauth_tokens_access_token"),
    )
    op.create_index("idx_oauth_tokens_user_id", "oauth_tokens", ["user_id"])

    op.create_table(
        "journal_entries",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    # Serves the per-user, newest-first listing query.
    op.create_index(
        "idx_journal_entries_user_created", "journal_entries", ["user_id", "created_at"]
    )

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "journal_entry_id",
            sa.String(36),
            sa.ForeignKey("journal_entries.id"),
            nullable=False,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_filename", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("storage_key", sa.String(512), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index(
        "idx_attachments_journal_entry_id", "attachments", ["journal_entry_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_attachments_journal_entry_id", table_name="attachments")
    op.drop_table("attachments")
    op.drop_index("idx_journal_entries_user_created", table_name="journal_entries")
    op.drop_table("journal_entries")
    op.drop_index("idx_oauth_tokens_user_id", table_name="oauth_tokens")
    op.drop_table("oauth_tokens")
    op.drop_table("oauth_clients")
    op.drop_index("idx_sessions_user_id", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("users")
