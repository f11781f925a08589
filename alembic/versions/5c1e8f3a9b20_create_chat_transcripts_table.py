"""create chat_transcripts table

Revision ID: 5c1e8f3a9b20
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1e8f3a9b20"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create chat_transcripts table."""
    op.create_table(
        "chat_transcripts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("session_id", sa.String(128), nullable=False),
        sa.Column("user_messages", sa.JSON(), nullable=False),
        sa.Column("bot_responses", sa.JSON(), nullable=False),
        sa.Column("message_count", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False),
        sa.Column("total_characters", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_chat_transcripts_session_id"),
        "chat_transcripts",
        ["session_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_chat_transcripts_ended_at"),
        "chat_transcripts",
        ["ended_at"],
        unique=False,
    )
    op.create_index(
        "ix_chat_transcripts_session_id_ended_at",
        "chat_transcripts",
        ["session_id", "ended_at"],
        unique=False,
    )


def downgrade() -> None:
    """Drop chat_transcripts table."""
    op.drop_index(
        "ix_chat_transcripts_session_id_ended_at", table_name="chat_transcripts"
    )
    op.drop_index(op.f("ix_chat_transcripts_ended_at"), table_name="chat_transcripts")
    op.drop_index(op.f("ix_chat_transcripts_session_id"), table_name="chat_transcripts")
    op.drop_table("chat_transcripts")
