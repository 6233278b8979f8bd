from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class BlogPost(Base):
    """Journal article."""

    __tablename__ = "blog_posts"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    featured_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
