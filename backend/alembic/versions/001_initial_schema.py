"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Creates the PeakPerform schema:
- Tables: users, auth_identities, chat_conversations, chat_messages, flashcards,
  quizzes, quiz_results, uploaded_documents
- Indexes: per-user recency indexes used by the dashboards
- Trigger: updated_at auto-update on users
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")
    )


def _user_id_column() -> sa.Column:
    return sa.Column(
        "user_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def _timestamp_column(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, postgresql.TIMESTAMP(timezone=True), nullable=True)
    return sa.Column(name, postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False)


def upgrade() -> None:
    # ==========================================================================
    # USERS / AUTH
    # ==========================================================================
    op.create_table(
        "users",
        _id_column(),
        sa.Column("email", sa.String(320), nullable=True, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "auth_identities",
        _id_column(),
        _user_id_column(),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("provider_user_id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("last_login_at"),
        sa.UniqueConstraint("provider", "provider_user_id", name="unique_provider_identity"),
    )
    op.create_index("ix_auth_identities_user_id", "auth_identities", ["user_id"])
    op.create_index("idx_auth_identities_provider_lookup", "auth_identities", ["provider", "provider_user_id"])

    # ==========================================================================
    # CHAT
    # ==========================================================================
    op.create_table(
        "chat_conversations",
        _id_column(),
        _user_id_column(),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("title", sa.String(), nullable=False, server_default="New Conversation"),
        _timestamp_column("created_at"),
        sa.CheckConstraint(
            "category IN ('health', 'academic', 'wellness')",
            name="valid_conversation_category",
        ),
    )
    op.create_index("idx_chat_conversations_user_created", "chat_conversations", ["user_id", "created_at"])

    op.create_table(
        "chat_messages",
        _id_column(),
        sa.Column(
            "conversation_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("chat_conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp_column("created_at"),
    )
    op.create_index("idx_chat_messages_conversation_id", "chat_messages", ["conversation_id"])

    # ==========================================================================
    # STUDY MATERIAL
    # ==========================================================================
    op.create_table(
        "flashcards",
        _id_column(),
        _user_id_column(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("front", sa.Text(), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="academic"),
        sa.Column("source_type", sa.String(20), nullable=False, server_default="manual"),
        _timestamp_column("created_at"),
    )
    op.create_index("idx_flashcards_user_created", "flashcards", ["user_id", "created_at"])
    op.create_index("idx_flashcards_user_category", "flashcards", ["user_id", "category"])

    op.create_table(
        "quizzes",
        _id_column(),
        _user_id_column(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("questions", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("source_type", sa.String(20), nullable=False, server_default="manual"),
        _timestamp_column("created_at"),
    )
    op.create_index("idx_quizzes_user_created", "quizzes", ["user_id", "created_at"])

    op.create_table(
        "quiz_results",
        _id_column(),
        _user_id_column(),
        sa.Column(
            "quiz_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        _timestamp_column("completed_at"),
        sa.CheckConstraint("score >= 0 AND score <= total_questions", name="valid_quiz_score"),
    )
    op.create_index("ix_quiz_results_quiz_id", "quiz_results", ["quiz_id"])
    op.create_index("idx_quiz_results_user_completed", "quiz_results", ["user_id", "completed_at"])

    # ==========================================================================
    # UPLOADED DOCUMENTS
    # ==========================================================================
    op.create_table(
        "uploaded_documents",
        _id_column(),
        _user_id_column(),
        sa.Column("file_name", sa.String(), nullable=False),
        sa.Column("file_path", sa.String(), nullable=False, unique=True),
        sa.Column("file_type", sa.String(), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        # Processing bookkeeping (pending, processing, completed, failed)
        sa.Column("processing_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("processing_error", sa.Text(), nullable=True),
        sa.Column("extracted_text", sa.Text(), nullable=True),
        sa.Column("flashcards_count", sa.Integer(), nullable=True),
        sa.Column("questions_count", sa.Integer(), nullable=True),
        _timestamp_column("flashcards_generated_at", nullable=True),
        _timestamp_column("quiz_generated_at", nullable=True),
        _timestamp_column("processed_at", nullable=True),
        _timestamp_column("created_at"),
    )
    op.create_index("idx_uploaded_documents_user_created", "uploaded_documents", ["user_id", "created_at"])

    # ==========================================================================
    # UPDATED_AT TRIGGER
    # ==========================================================================
    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ language 'plpgsql';
        """
    )
    op.execute(
        """
        CREATE TRIGGER update_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
        """
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS update_users_updated_at ON users")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column()")

    # Drop tables in reverse dependency order
    op.drop_table("uploaded_documents")
    op.drop_table("quiz_results")
    op.drop_table("quizzes")
    op.drop_table("flashcards")
    op.drop_table("chat_messages")
    op.drop_table("chat_conversations")
    op.drop_table("auth_identities")
    op.drop_table("users")
