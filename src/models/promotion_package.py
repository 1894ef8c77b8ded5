from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.database import Base
from src.models.base import TimestampMixin

if TYPE_CHECKING:
    from src.models.package import Package
    from src.models.promotion import Promotion


class PromotionPackage(Base, TimestampMixin):
    __tablename__ = "promotion_packages"
    __table_args__ = (
        UniqueConstraint("promotion_id", "package_id", name="uq_promotion_package"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    promotion_id: Mapped[int] = mapped_column(
        ForeignKey("promotions.id", ondelete="CASCADE"), nullable=False
    )
    package_id: Mapped[int] = mapped_column(
        ForeignKey("packages.id", ondelete="CASCADE"), nullable=False
    )

    promotion: Mapped["Promotion"] = relationship(back_populates="package_links")
    package: Mapped["Package"] = relationship(back_populates="promotion_links")

    def __repr__(self) -> str:
        return f"<PromotionPackage promotion={self.promotion_id} package={self.package_id}>"
