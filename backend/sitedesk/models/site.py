from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, SoftDeleteMixin, TimestampMixin

SITE_TYPES = ("WordPress", "Drupal", "SPIP", "Typo3", "laravel", "symfony", "other")
SITE_TEAMS = ("quai13", "vernalis")

site_user = Table(
    "site_user",
    Base.metadata,
    Column("site_id", ForeignKey("sites.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Site(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "sites"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    url: Mapped[str] = mapped_column(String(2048))
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), default="other", server_default="other")
    team: Mapped[str] = mapped_column(String(20), default="quai13", server_default="quai13")
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    sync_enabled: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    api_token: Mapped[str | None] = mapped_column(String(255))
    wordpress_version: Mapped[str | None] = mapped_column(String(50))
    is_multisite: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    last_sync: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    owner = relationship("User", foreign_keys=[user_id])
    users = relationship("User", secondary=site_user, order_by="User.name", passive_deletes=True)
    credential = relationship("SiteCredential", back_populates="site", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    contract = relationship("SiteContract", back_populates="site", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    server_info = relationship("SiteServerInfo", back_populates="site", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    metrics = relationship("SiteMetric", back_populates="site", cascade="all, delete-orphan", passive_deletes=True)
    pagespeed_insights = relationship("SitePageSpeedInsight", back_populates="site", cascade="all, delete-orphan", passive_deletes=True)
    job_tasks = relationship("JobTask", back_populates="site", cascade="all, delete-orphan", passive_deletes=True)
