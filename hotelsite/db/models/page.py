from typing import Any

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class Page(Base):
    """CMS page rendered on the public site."""

    __tablename__ = "pages"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    hero_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    og_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    # Carousel slides: [{"url": ..., "caption": ...}] or bare URL strings
    hero_gallery: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)
