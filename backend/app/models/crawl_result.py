"""CrawlResult model for storing generated llms.txt output."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class CrawlResult(Base):
    """Output of one completed crawl job."""

    __tablename__ = "crawl_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(2048), index=True)

    # Generated documents
    llms_txt: Mapped[str] = mapped_column(Text)
    llms_full_txt: Mapped[str] = mapped_column(Text)

    # Best-effort client address from forwarded headers
    ip_address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
