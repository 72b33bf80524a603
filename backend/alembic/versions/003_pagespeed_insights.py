"""Add site_pagespeed_insights (one row per site and strategy)

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "site_pagespeed_insights",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False),
        sa.Column("strategy", sa.String(10), nullable=False, server_default="mobile"),
        sa.Column("performance_score", sa.Numeric(3, 2), nullable=True),
        sa.Column("accessibility_score", sa.Numeric(3, 2), nullable=True),
        sa.Column("best_practices_score", sa.Numeric(3, 2), nullable=True),
        sa.Column("seo_score", sa.Numeric(3, 2), nullable=True),
        sa.Column("first_contentful_paint", sa.Integer(), nullable=True),
        sa.Column("speed_index", sa.Integer(), nullable=True),
        sa.Column("largest_contentful_paint", sa.Integer(), nullable=True),
        sa.Column("time_to_interactive", sa.Integer(), nullable=True),
        sa.Column("total_blocking_time", sa.Integer(), nullable=True),
        sa.Column("cumulative_layout_shift", sa.Float(), nullable=True),
        sa.Column("full_response", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("site_id", "strategy", name="uq_site_pagespeed_insights_site_strategy"),
    )
    op.create_index("ix_site_pagespeed_insights_site_id", "site_pagespeed_insights", ["site_id"])


def downgrade() -> None:
    op.drop_index("ix_site_pagespeed_insights_site_id", table_name="site_pagespeed_insights")
    op.drop_table("site_pagespeed_insights")
