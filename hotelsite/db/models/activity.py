from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotelsite.db.base import Base


class Activity(Base):
    __tablename__ = "activities"

    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    media_urls: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)
