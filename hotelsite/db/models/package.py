from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class Package(Base):
    """Stay package (room + meals + activities bundle)."""

    __tablename__ = "packages"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    featured_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    banner_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    gallery: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
