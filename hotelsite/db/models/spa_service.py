from typing import Any

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class SpaService(Base):
    __tablename__ = "spa_services"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)

    image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    media_urls: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)
