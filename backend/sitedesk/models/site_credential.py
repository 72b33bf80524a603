from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, TimestampMixin

# Columns holding ciphertext; see sitedesk.services.site_resources for the codec.
SECRET_FIELDS = ("ftp_password", "db_password", "login_password", "api_keys")


class SiteCredential(Base, TimestampMixin):
    __tablename__ = "site_credentials"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), unique=True)

    ftp_host: Mapped[str | None] = mapped_column(String(255))
    ftp_username: Mapped[str | None] = mapped_column(String(255))
    ftp_password: Mapped[str | None] = mapped_column(Text)

    db_host: Mapped[str | None] = mapped_column(String(255))
    db_name: Mapped[str | None] = mapped_column(String(255))
    db_username: Mapped[str | None] = mapped_column(String(255))
    db_password: Mapped[str | None] = mapped_column(Text)

    login_url: Mapped[str | None] = mapped_column(String(255))
    login_username: Mapped[str | None] = mapped_column(String(255))
    login_password: Mapped[str | None] = mapped_column(Text)

    api_keys: Mapped[str | None] = mapped_column(Text)

    site = relationship("Site", back_populates="credential")
