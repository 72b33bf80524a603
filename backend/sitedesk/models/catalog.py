"""Bookmark catalog: resources and tools, each with its own categories.

The two families share one shape but live in separate tables, so every
mapping here is declared twice.
"""
from sqlalchemy import BigInteger, Column, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitedesk.models.base import Base, SoftDeleteMixin, TimestampMixin

DEFAULT_CATEGORY_COLOR = "#6366f1"


class Media(Base, TimestampMixin):
    """Attachment metadata. Files themselves are stored elsewhere."""

    __tablename__ = "media"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    file_name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str | None] = mapped_column(String(255))
    size: Mapped[int] = mapped_column(BigInteger, default=0)
    url: Mapped[str] = mapped_column(String(2048))


def _pivot(name: str, left: tuple[str, str], right: tuple[str, str]) -> Table:
    """Association table keyed on (left_column, right_column)."""
    return Table(
        name,
        Base.metadata,
        Column(left[0], ForeignKey(f"{left[1]}.id", ondelete="CASCADE"), primary_key=True),
        Column(right[0], ForeignKey(f"{right[1]}.id", ondelete="CASCADE"), primary_key=True),
    )


resource_category_resource = _pivot(
    "resource_category_resource",
    ("resource_category_id", "resource_categories"),
    ("resource_id", "resources"),
)
resource_user_favorites = _pivot(
    "resource_user_favorites", ("user_id", "users"), ("resource_id", "resources")
)
resource_media = _pivot("resource_media", ("resource_id", "resources"), ("media_id", "media"))

tool_category_tool = _pivot(
    "tool_category_tool",
    ("tool_category_id", "tool_categories"),
    ("tool_id", "tools"),
)
tool_user_favorites = _pivot("tool_user_favorites", ("user_id", "users"), ("tool_id", "tools"))
tool_media = _pivot("tool_media", ("tool_id", "tools"), ("media_id", "media"))


class ResourceCategory(Base, TimestampMixin):
    __tablename__ = "resource_categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(20), default=DEFAULT_CATEGORY_COLOR)


class Resource(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    image: Mapped[str | None] = mapped_column(String(2048))
    url: Mapped[str | None] = mapped_column(String(2048))
    login: Mapped[str | None] = mapped_column(String(255))
    password: Mapped[str | None] = mapped_column(String(255))
    api_key: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)

    categories = relationship("ResourceCategory", secondary=resource_category_resource, order_by="ResourceCategory.name", passive_deletes=True)
    media = relationship("Media", secondary=resource_media, passive_deletes=True)


class ToolCategory(Base, TimestampMixin):
    __tablename__ = "tool_categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(20), default=DEFAULT_CATEGORY_COLOR)


class Tool(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "tools"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    image: Mapped[str | None] = mapped_column(String(2048))
    url: Mapped[str | None] = mapped_column(String(2048))
    login: Mapped[str | None] = mapped_column(String(255))
    password: Mapped[str | None] = mapped_column(String(255))
    api_key: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)

    categories = relationship("ToolCategory", secondary=tool_category_tool, order_by="ToolCategory.name", passive_deletes=True)
    media = relationship("Media", secondary=tool_media, passive_deletes=True)
