"""Add resource and tool catalogs with categories, favorites and media

Revision ID: 002
Revises: 001
Create Date: 2026-10-08
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FAMILIES = (
    # (items table, category table, category pivot, item column, category column)
    ("resources", "resource_categories", "resource_category_resource", "resource_id", "resource_category_id"),
    ("tools", "tool_categories", "tool_category_tool", "tool_id", "tool_category_id"),
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _link(name: str, left: tuple[str, str], right: tuple[str, str]) -> None:
    op.create_table(
        name,
        sa.Column(left[0], sa.Integer(), sa.ForeignKey(f"{left[1]}.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(right[0], sa.Integer(), sa.ForeignKey(f"{right[1]}.id", ondelete="CASCADE"), primary_key=True),
    )


def upgrade() -> None:
    op.create_table(
        "media",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("url", sa.String(2048), nullable=False),
        *_timestamps(),
    )

    for items, categories, pivot, item_col, category_col in FAMILIES:
        op.create_table(
            categories,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("slug", sa.String(255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("color", sa.String(20), nullable=False, server_default="#6366f1"),
            *_timestamps(),
            sa.UniqueConstraint("slug", name=f"uq_{categories}_slug"),
        )
        op.create_table(
            items,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(255), nullable=False),
            sa.Column("image", sa.String(2048), nullable=True),
            sa.Column("url", sa.String(2048), nullable=True),
            sa.Column("login", sa.String(255), nullable=True),
            sa.Column("password", sa.String(255), nullable=True),
            sa.Column("api_key", sa.Text(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
        )
        op.create_index(f"ix_{items}_deleted_at", items, ["deleted_at"])

        _link(pivot, (category_col, categories), (item_col, items))
        _link(f"{items[:-1]}_user_favorites", ("user_id", "users"), (item_col, items))
        _link(f"{items[:-1]}_media", (item_col, items), ("media_id", "media"))


def downgrade() -> None:
    for items, categories, pivot, _, _ in reversed(FAMILIES):
        op.drop_table(f"{items[:-1]}_media")
        op.drop_table(f"{items[:-1]}_user_favorites")
        op.drop_table(pivot)
        op.drop_table(items)
        op.drop_table(categories)
    op.drop_table("media")
