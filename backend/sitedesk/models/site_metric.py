from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, TimestampMixin


class SiteMetric(Base, TimestampMixin):
    """Append-only server snapshot. Independent from SiteServerInfo."""

    __tablename__ = "site_metrics"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), index=True)

    php_version: Mapped[str | None] = mapped_column(String(50))
    memory_limit: Mapped[str | None] = mapped_column(String(50))
    max_execution_time: Mapped[str | None] = mapped_column(String(50))
    post_max_size: Mapped[str | None] = mapped_column(String(50))
    upload_max_filesize: Mapped[str | None] = mapped_column(String(50))
    max_input_vars: Mapped[str | None] = mapped_column(String(50))
    php_extensions: Mapped[list[str] | None] = mapped_column(JSON)

    server_ip: Mapped[str | None] = mapped_column(String(64))
    server_software: Mapped[str | None] = mapped_column(String(255))
    server_os: Mapped[str | None] = mapped_column(String(255))
    server_hostname: Mapped[str | None] = mapped_column(String(255))

    mysql_version: Mapped[str | None] = mapped_column(String(100))
    mysql_server_info: Mapped[str | None] = mapped_column(String(255))

    wordpress_version: Mapped[str | None] = mapped_column(String(50))
    wordpress_site_url: Mapped[str | None] = mapped_column(String(2048))
    wordpress_home_url: Mapped[str | None] = mapped_column(String(2048))
    wordpress_is_multisite: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    wordpress_max_upload_size: Mapped[str | None] = mapped_column(String(50))
    wordpress_permalink_structure: Mapped[str | None] = mapped_column(String(255))
    wordpress_active_theme: Mapped[str | None] = mapped_column(String(255))
    wordpress_active_theme_version: Mapped[str | None] = mapped_column(String(50))
    wordpress_active_plugins: Mapped[list | None] = mapped_column(JSON)

    lighthouse_score: Mapped[int | None] = mapped_column(Integer)
    last_check: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    site = relationship("Site", back_populates="metrics")
