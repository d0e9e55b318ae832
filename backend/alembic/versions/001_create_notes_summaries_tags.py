"""Create notes, summaries and note_tags tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema: notes (with soft delete), their AI summaries and tags.
How:   Portable column types (Uuid, DateTime with time zone), so the same
       migration runs on PostgreSQL and SQLite.

summaries.note_id has no foreign key: the full health check writes a test
summary for a sentinel note id that has no notes row.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "user_id",
            sa.String(64),
            nullable=False,
            comment="Owner identifier from the authentication layer",
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    # Dashboard listing: a user's notes by last update
    op.create_index("idx_notes_user_updated_at", "notes", ["user_id", "updated_at"])

    op.create_table(
        "summaries",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("note_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "model",
            sa.String(100),
            nullable=False,
            comment="Generation model id, or 'manual-edit' for human-authored summaries",
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_summaries_note_id", "summaries", ["note_id"])

    op.create_table(
        "note_tags",
        sa.Column("note_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("tag", sa.String(100), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("note_id", "tag"),
    )


def downgrade() -> None:
    """Drops all three tables. Destructive: every note, summary and tag is lost."""
    op.drop_table("note_tags")
    op.drop_index("idx_summaries_note_id", table_name="summaries")
    op.drop_table("summaries")
    op.drop_index("idx_notes_user_updated_at", table_name="notes")
    op.drop_table("notes")
