from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.database import Base
from src.models.base import TimestampMixin

if TYPE_CHECKING:
    from src.models.promotion_package import PromotionPackage


class Promotion(Base, TimestampMixin):
    __tablename__ = "promotions"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, default="")
    discount_percent: Mapped[Optional[float]] = mapped_column(Float)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # maintained by the promotion scheduler
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    package_links: Mapped[List["PromotionPackage"]] = relationship(
        back_populates="promotion", cascade="all, delete-orphan", passive_deletes=True
    )

    def window_contains(self, moment: datetime) -> bool:
        return self.start_date <= moment <= self.end_date

    def __repr__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"<Promotion {self.name} ({state})>"
