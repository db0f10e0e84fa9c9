"""create users, generations, proposals, flashcards and error log tables

Revision ID: 3b7c1e9a2d41
Revises:
Create Date: 2026-10-19 10:12:03.418220

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3b7c1e9a2d41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


flashcard_source = postgresql.ENUM(
    "manual", "ai-full", "ai-edited", name="flashcard_source", create_type=False
)


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    flashcard_source.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("hashed_password", sa.String(length=1024), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)

    op.create_table(
        "generations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("source_text_length", sa.Integer(), nullable=False),
        sa.Column("source_text_hash", sa.String(length=32), nullable=False),
        sa.Column("generated_count", sa.Integer(), nullable=False),
        sa.Column("generation_duration", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_generations_id"), "generations", ["id"], unique=False)
    op.create_index(
        op.f("ix_generations_user_id"), "generations", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_generations_source_text_hash"),
        "generations",
        ["source_text_hash"],
        unique=False,
    )
    op.create_index(
        op.f("ix_generations_created_at"), "generations", ["created_at"], unique=False
    )

    op.create_table(
        "flashcard_proposals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("generation_id", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("source", flashcard_source, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["generation_id"], ["generations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_flashcard_proposals_id"), "flashcard_proposals", ["id"], unique=False
    )
    op.create_index(
        op.f("ix_flashcard_proposals_generation_id"),
        "flashcard_proposals",
        ["generation_id"],
        unique=False,
    )

    op.create_table(
        "flashcards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("generation_id", sa.Integer(), nullable=True),
        sa.Column("question", sa.String(length=200), nullable=False),
        sa.Column("answer", sa.String(length=500), nullable=False),
        sa.Column("source", flashcard_source, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "(source = 'manual') = (generation_id IS NULL)",
            name="ck_flashcards_source_generation",
        ),
        sa.ForeignKeyConstraint(
            ["generation_id"], ["generations.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_flashcards_id"), "flashcards", ["id"], unique=False)
    op.create_index(
        op.f("ix_flashcards_user_id"), "flashcards", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_flashcards_generation_id"),
        "flashcards",
        ["generation_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_flashcards_created_at"), "flashcards", ["created_at"], unique=False
    )

    op.create_table(
        "generation_error_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("error_code", sa.String(length=64), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("source_text_length", sa.Integer(), nullable=False),
        sa.Column("source_text_hash", sa.String(length=32), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_generation_error_logs_id"),
        "generation_error_logs",
        ["id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_generation_error_logs_user_id"),
        "generation_error_logs",
        ["user_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_generation_error_logs_created_at"),
        "generation_error_logs",
        ["created_at"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("generation_error_logs")
    op.drop_table("flashcards")
    op.drop_table("flashcard_proposals")
    op.drop_table("generations")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    flashcard_source.drop(op.get_bind(), checkfirst=True)
