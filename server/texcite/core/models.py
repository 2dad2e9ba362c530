from __future__ import annotations

import datetime as dt
import json
import uuid

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from server.texcite.core.db import Base


def _uuid() -> str:
    return uuid.uuid4().hex


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_uuid)
    owner_id: Mapped[str] = mapped_column(String(64), index=True)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    github_repo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # JSON-encoded list of repository paths chosen for analysis.
    github_repo_files: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_now)
    last_edited_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_now, onupdate=_now)

    sources: Mapped[list["Source"]] = relationship(back_populates="project", cascade="all, delete-orphan")
    tags: Mapped[list["Tag"]] = relationship(back_populates="project", cascade="all, delete-orphan")

    @property
    def selected_files(self) -> list[str]:
        raw = (self.github_repo_files or "").strip()
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except ValueError:
            return []
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if isinstance(v, str) and v.strip()]

    @selected_files.setter
    def selected_files(self, paths: list[str]) -> None:
        self.github_repo_files = json.dumps(list(paths)) if paths else None


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(String(32), ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    abbreviation: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(Text)
    color: Mapped[str] = mapped_column(String(16), default="#64748b")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped["Project"] = relationship(back_populates="tags")
    source_links: Mapped[list["SourceTag"]] = relationship(back_populates="tag", cascade="all, delete-orphan")


class Source(Base):
    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(String(32), ForeignKey("projects.id", ondelete="CASCADE"), index=True)
    abbreviation: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str] = mapped_column(Text)
    authors: Mapped[str | None] = mapped_column(Text, nullable=True)
    publication_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped["Project"] = relationship(back_populates="sources")
    tag_links: Mapped[list["SourceTag"]] = relationship(back_populates="source", cascade="all, delete-orphan")


class SourceTag(Base):
    __tablename__ = "source_tags"
    __table_args__ = (Index("source_tags_tag_id_idx", "tag_id"),)

    source_id: Mapped[str] = mapped_column(String(32), ForeignKey("sources.id", ondelete="CASCADE"), primary_key=True)
    tag_id: Mapped[str] = mapped_column(String(32), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)

    source: Mapped["Source"] = relationship(back_populates="tag_links")
    tag: Mapped["Tag"] = relationship(back_populates="source_links")
