"""Initial schema: crawl results and domain status.

Revision ID: 001
Revises:
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Output of completed crawl jobs
    op.create_table(
        "crawl_results",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("llms_txt", sa.Text, nullable=False),
        sa.Column("llms_full_txt", sa.Text, nullable=False),
        sa.Column("ip_address", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_crawl_results_url", "crawl_results", ["url"])
    op.create_index("ix_crawl_results_created_at", "crawl_results", ["created_at"])

    # Last llms.txt probe outcome per domain
    op.create_table(
        "domain_status",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("has_llms_txt", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("last_checked", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_domain_status_domain", "domain_status", ["domain"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_domain_status_domain", table_name="domain_status")
    op.drop_table("domain_status")
    op.drop_index("ix_crawl_results_created_at", table_name="crawl_results")
    op.drop_index("ix_crawl_results_url", table_name="crawl_results")
    op.drop_table("crawl_results")
