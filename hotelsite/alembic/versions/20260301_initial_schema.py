"""Create media library and content tables.

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-03-01
"""

from alembic import op
import sqlalchemy as sa

revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _content_table(name: str, label: str, *columns: sa.Column) -> None:
    op.create_table(
        name,
        *_audit_columns(),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column(label, sa.String(500), nullable=False),
        *columns,
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_slug", name, ["slug"], unique=True)


def upgrade() -> None:
    op.create_table(
        "media_assets",
        *_audit_columns(),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("caption", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", sa.String(100), nullable=False, server_default="hotel"),
        sa.Column("media_type", sa.String(16), nullable=False, server_default="image"),
        sa.Column("source_type", sa.String(16), nullable=False, server_default="upload"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_protected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("protected_key", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_assets_url", "media_assets", ["url"])
    op.create_index("ix_media_assets_category", "media_assets", ["category"])
    op.create_index("ix_media_assets_source_type", "media_assets", ["source_type"])

    _content_table(
        "pages", "title",
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hero_image", sa.String(2048), nullable=True),
        sa.Column("og_image", sa.String(2048), nullable=True),
        sa.Column("hero_gallery", sa.JSON(), nullable=True),
    )
    _content_table(
        "blog_posts", "title",
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("featured_image", sa.String(2048), nullable=True),
    )
    _content_table(
        "room_types", "name",
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("max_guests", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("hero_image", sa.String(2048), nullable=True),
        sa.Column("gallery", sa.JSON(), nullable=True),
    )
    _content_table(
        "packages", "title",
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("featured_image", sa.String(2048), nullable=True),
        sa.Column("banner_image", sa.String(2048), nullable=True),
        sa.Column("gallery", sa.JSON(), nullable=True),
    )
    _content_table(
        "activities", "title",
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("image", sa.String(2048), nullable=True),
        sa.Column("media_urls", sa.JSON(), nullable=True),
    )
    _content_table(
        "spa_services", "title",
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("image", sa.String(2048), nullable=True),
        sa.Column("media_urls", sa.JSON(), nullable=True),
    )
    _content_table(
        "meals", "title",
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("featured_media", sa.String(2048), nullable=True),
        sa.Column("media_urls", sa.JSON(), nullable=True),
    )


def downgrade() -> None:
    for name in ("meals", "spa_services", "activities", "packages", "room_types", "blog_posts", "pages"):
        op.drop_index(f"ix_{name}_slug", table_name=name)
        op.drop_table(name)
    op.drop_index("ix_media_assets_source_type", table_name="media_assets")
    op.drop_index("ix_media_assets_category", table_name="media_assets")
    op.drop_index("ix_media_assets_url", table_name="media_assets")
    op.drop_table("media_assets")
