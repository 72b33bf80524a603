from decimal import Decimal

from sqlalchemy import JSON, Float, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, TimestampMixin

STRATEGIES = ("mobile", "desktop")


class SitePageSpeedInsight(Base, TimestampMixin):
    __tablename__ = "site_pagespeed_insights"
    __table_args__ = (
        UniqueConstraint("site_id", "strategy", name="uq_site_pagespeed_insights_site_strategy"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)
    strategy: Mapped[str] = mapped_column(String(10), default="mobile", server_default="mobile")

    performance_score: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))
    accessibility_score: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))
    best_practices_score: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))
    seo_score: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))

    # Raw audit numericValue; timings in milliseconds.
    first_contentful_paint: Mapped[int | None] = mapped_column(Integer)
    speed_index: Mapped[int | None] = mapped_column(Integer)
    largest_contentful_paint: Mapped[int | None] = mapped_column(Integer)
    time_to_interactive: Mapped[int | None] = mapped_column(Integer)
    total_blocking_time: Mapped[int | None] = mapped_column(Integer)
    cumulative_layout_shift: Mapped[float | None] = mapped_column(Float)

    full_response: Mapped[dict | None] = mapped_column(JSON)

    site = relationship("Site", back_populates="pagespeed_insights")
