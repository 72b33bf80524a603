from datetime import date, datetime, timezone

from sqlalchemy import Date, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, TimestampMixin


def _today() -> date:
    return datetime.now(timezone.utc).date()


class SiteContract(Base, TimestampMixin):
    __tablename__ = "site_contracts"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), unique=True)
    contract_start_date: Mapped[date | None] = mapped_column(Date)
    contract_end_date: Mapped[date | None] = mapped_column(Date)
    # Free-text magnitudes such as "10GB"; never normalized.
    contract_capacity: Mapped[str | None] = mapped_column(String(255))
    contract_storage_usage: Mapped[str | None] = mapped_column(String(255))
    contract_storage_limit: Mapped[str | None] = mapped_column(String(255))

    site = relationship("Site", back_populates="contract")

    def is_active(self, today: date | None = None) -> bool:
        today = today or _today()
        if self.contract_start_date is None or self.contract_start_date > today:
            return False
        return self.contract_end_date is None or self.contract_end_date >= today

    def is_expired(self, today: date | None = None) -> bool:
        today = today or _today()
        return self.contract_end_date is not None and self.contract_end_date < today

    def days_until_expiry(self, today: date | None = None) -> int | None:
        """Signed day count to the end date; negative once expired."""
        if self.contract_end_date is None:
            return None
        today = today or _today()
        return (self.contract_end_date - today).days
