from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class RoomType(Base):
    """Bookable room category."""

    __tablename__ = "room_types"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    hero_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    gallery: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
