"""create shop_cache_entries table

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "shop_cache_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("city", sa.String(length=64), nullable=False,
                  comment="Region identifier, e.g. hcmc"),
        sa.Column("site_url", sa.String(length=512), nullable=False,
                  comment="Scraped rental site URL"),
        sa.Column(
            "shop_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Normalized shop payload as relayed to clients",
        ),
        sa.Column(
            "scraped_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Capture time of the live scrape (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "city",
            "site_url",
            name="uq_shop_cache_entries_city_site",
        ),
    )
    op.create_index(
        "ix_shop_cache_entries_city_scraped_at",
        "shop_cache_entries",
        ["city", "scraped_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_shop_cache_entries_city_scraped_at", table_name="shop_cache_entries")
    op.drop_table("shop_cache_entries")
