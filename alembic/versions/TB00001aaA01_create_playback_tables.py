"""create books, listening progress and library tables

Revision ID: TB00001aaA01
Revises:
Create Date: 2026-10-18 10:00:00.000000

Hey future me - the initial schema.

listening_progress holds ONE row per (user_id, book_id). The unique constraint backs up
the per-pair lock in ProgressService: if two writers ever race past the lock (two app
instances), the loser gets an IntegrityError instead of a duplicate row.

user_id is NOT a foreign key anywhere - users live in the hosted backend's auth schema.

book_likes / book_saves are plain (user, book) pairs with the same uniqueness rule.
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "TB00001aaA01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the tables (idempotent - skips tables that already exist)."""
    conn = op.get_bind()
    existing = set(sa.inspect(conn).get_table_names())

    if "books" not in existing:
        op.create_table(
            "books",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("author", sa.String(255), nullable=False),
            sa.Column("cover_url", sa.String(1024), nullable=True),
            sa.Column("genre", sa.String(100), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            # Object key in the audio bucket, or an absolute http(s) URL
            sa.Column("audio_path", sa.String(1024), nullable=True),
            sa.Column("duration", sa.Float(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_books_title", "books", ["title"])
        op.create_index("ix_books_author", "books", ["author"])
        op.create_index("ix_books_genre", "books", ["genre"])

    if "listening_progress" not in existing:
        op.create_table(
            "listening_progress",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(36), nullable=False),
            sa.Column(
                "book_id",
                sa.String(36),
                sa.ForeignKey("books.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("current_position", sa.Float(), nullable=False, server_default="0"),
            sa.Column("duration", sa.Float(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("user_id", "book_id", name="uq_listening_progress_user_book"),
        )
        # Continue Listening shelf: WHERE user_id = ? ORDER BY updated_at DESC
        op.create_index(
            "ix_listening_progress_user_updated",
            "listening_progress",
            ["user_id", "updated_at"],
        )

    for table in ("book_likes", "book_saves"):
        if table in existing:
            continue
        op.create_table(
            table,
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("user_id", sa.String(36), nullable=False),
            sa.Column(
                "book_id",
                sa.String(36),
                sa.ForeignKey("books.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.UniqueConstraint("user_id", "book_id", name=f"uq_{table}_user_book"),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])


def downgrade() -> None:
    """Drop everything created above."""
    for table in ("book_saves", "book_likes"):
        op.drop_index(f"ix_{table}_user_id", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_listening_progress_user_updated", table_name="listening_progress")
    op.drop_table("listening_progress")

    op.drop_index("ix_books_genre", table_name="books")
    op.drop_index("ix_books_author", table_name="books")
    op.drop_index("ix_books_title", table_name="books")
    op.drop_table("books")
