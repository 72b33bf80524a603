from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, TimestampMixin


class SiteServerInfo(Base, TimestampMixin):
    __tablename__ = "site_server_infos"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), unique=True)

    php_version: Mapped[str | None] = mapped_column(String(50))
    php_memory_limit: Mapped[str | None] = mapped_column(String(50))
    php_max_execution_time: Mapped[int | None] = mapped_column(Integer)
    php_post_max_size: Mapped[str | None] = mapped_column(String(50))
    php_upload_max_filesize: Mapped[str | None] = mapped_column(String(50))

    mysql_version: Mapped[str | None] = mapped_column(String(100))
    mysql_server_info: Mapped[str | None] = mapped_column(String(255))

    server_ip: Mapped[str | None] = mapped_column(String(64))
    server_hostname: Mapped[str | None] = mapped_column(String(255))

    site = relationship("Site", back_populates="server_info")

    @property
    def php_config(self) -> dict:
        return {
            "version": self.php_version,
            "memory_limit": self.php_memory_limit,
            "max_execution_time": self.php_max_execution_time,
            "post_max_size": self.php_post_max_size,
            "upload_max_filesize": self.php_upload_max_filesize,
        }

    @property
    def mysql_config(self) -> dict:
        return {"version": self.mysql_version, "server_info": self.mysql_server_info}

    @property
    def server_config(self) -> dict:
        return {"server_ip": self.server_ip, "server_hostname": self.server_hostname}
