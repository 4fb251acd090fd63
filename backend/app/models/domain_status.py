"""DomainStatus model for tracking which domains publish an llms.txt."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DomainStatus(Base):
    """Last known llms.txt availability for a crawled domain."""

    __tablename__ = "domain_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    has_llms_txt: Mapped[bool] = mapped_column(Boolean, default=False)
    last_checked: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    def mark_checked(self, has_llms_txt: bool) -> None:
        """Record the outcome of a liveness probe."""
        self.has_llms_txt = has_llms_txt
        self.last_checked = datetime.now(timezone.utc)
