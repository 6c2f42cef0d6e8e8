"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates document storage tables:
- document
- document_chunk
- chunk_embedding
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # document table
    op.create_table(
        "document",
        sa.Column("document_id", sa.Uuid(), primary_key=True),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("media_type", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        sa.Column("content_hash", sa.Text(), nullable=False),
        sa.Column("chunk_count", sa.Integer(), nullable=False),
    )
    op.create_index("idx_document_hash", "document", ["content_hash"])

    # document_chunk table
    op.create_table(
        "document_chunk",
        sa.Column("chunk_id", sa.Uuid(), primary_key=True),
        sa.Column("document_id", sa.Uuid(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("token_count", sa.Integer(), nullable=False),
        sa.Column("start_offset", sa.Integer(), nullable=False),
        sa.Column("end_offset", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["document.document_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("document_id", "order", name="uq_chunk_document_order"),
    )
    op.create_index("idx_chunk_document", "document_chunk", ["document_id"])

    # chunk_embedding table
    op.create_table(
        "chunk_embedding",
        sa.Column("embedding_id", sa.Uuid(), primary_key=True),
        sa.Column("chunk_id", sa.Uuid(), nullable=False),
        sa.Column("dimensions", sa.Integer(), nullable=False),
        sa.Column("vector", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(["chunk_id"], ["document_chunk.chunk_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("chunk_id", name="uq_embedding_chunk"),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("chunk_embedding")
    op.drop_index("idx_chunk_document", table_name="document_chunk")
    op.drop_table("document_chunk")
    op.drop_index("idx_document_hash", table_name="document")
    op.drop_table("document")
