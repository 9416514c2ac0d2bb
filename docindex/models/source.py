"""Documentation source model."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from docindex.database import Base


class SourceType(StrEnum):
    """Kinds of documentation sources."""

    GIT = "git"
    MANIFEST = "manifest"  # Single llms.txt-style file
    WEBSITE = "website"


class SourceStatus(StrEnum):
    """Indexing lifecycle of a source."""

    PENDING = "pending"
    INDEXING = "indexing"
    COMPLETED = "completed"
    ERROR = "error"


class DocumentationSource(Base):
    """A registered documentation source to crawl and chunk."""

    __tablename__ = "documentation_sources"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    branch: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Indexing state
    status: Mapped[str] = mapped_column(
        String(20),
        default=SourceStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    document_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_indexed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_terminal(self) -> bool:
        """Completed and errored sources are not being worked on."""
        return self.status in (SourceStatus.COMPLETED, SourceStatus.ERROR)
