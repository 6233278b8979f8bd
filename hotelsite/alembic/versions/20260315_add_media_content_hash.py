"""Add content hash, size and original filename to media records.

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-03-15
"""

from alembic import op
import sqlalchemy as sa

revision = "b7c8d9e0f1a2"
down_revision = "a1b2c3d4e5f6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("media_assets") as batch_op:
        batch_op.add_column(sa.Column("content_hash", sa.String(64), nullable=True))
        batch_op.add_column(sa.Column("byte_size", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("original_filename", sa.String(255), nullable=True))
    op.create_index("ix_media_assets_content_hash", "media_assets", ["content_hash"])
    op.create_index("ix_media_assets_hash_size", "media_assets", ["content_hash", "byte_size"])


def downgrade() -> None:
    op.drop_index("ix_media_assets_hash_size", table_name="media_assets")
    op.drop_index("ix_media_assets_content_hash", table_name="media_assets")
    with op.batch_alter_table("media_assets") as batch_op:
        batch_op.drop_column("original_filename")
        batch_op.drop_column("byte_size")
        batch_op.drop_column("content_hash")
