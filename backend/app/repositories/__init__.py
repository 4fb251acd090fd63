"""Repository implementations for data access."""

from app.repositories.postgres import (
    PostgresCrawlResultRepository,
    PostgresDomainStatusRepository,
    PostgresResultStore,
)

__all__ = [
    "PostgresCrawlResultRepository",
    "PostgresDomainStatusRepository",
    "PostgresResultStore",
]
