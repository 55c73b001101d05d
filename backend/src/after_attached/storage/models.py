"""SQLAlchemy models for stored blobs and their attachments to records.

An Attachment links one Blob to one record under a name (e.g. "file").
Records are referenced polymorphically by class name and integer id, so
any model mapped on ``Base`` can own attachments.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, LargeBinary, String, inspect
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    object_session,
    relationship,
)


class Base(DeclarativeBase):
    """Declarative base for attachment tables and the records owning them."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def mapped_class(class_name: str) -> type | None:
    """Find the class mapped on ``Base`` with the given ``__name__``."""
    for mapper in Base.registry.mappers:
        if mapper.class_.__name__ == class_name:
            return mapper.class_
    return None


class Blob(Base):
    """Stored file content and its metadata."""

    __tablename__ = "attached_blobs"

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(String(64), unique=True)
    filename: Mapped[str] = mapped_column(String(255))
    content_type: Mapped[str | None] = mapped_column(String(255))
    byte_size: Mapped[int]
    checksum: Mapped[str] = mapped_column(String(64))
    data: Mapped[bytes] = mapped_column(LargeBinary)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<Blob {self.key} {self.filename!r}>"


class Attachment(Base):
    """A named association between a record and a Blob.

    Attributes:
        name: Attachment name on the record (e.g. "file", "photos")
        record_type: Class name of the owning record
        record_id: Primary key of the owning record
        blob: The attached content
    """

    __tablename__ = "attached_attachments"
    __table_args__ = (
        Index(
            "ix_attached_attachments_uniqueness",
            "record_type",
            "record_id",
            "name",
            "blob_id",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    record_type: Mapped[str] = mapped_column(String(255))
    record_id: Mapped[int]
    blob_id: Mapped[int] = mapped_column(ForeignKey("attached_blobs.id"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    blob: Mapped[Blob] = relationship(lazy="joined")

    @property
    def record(self) -> Any:
        """The owning record, or None if it cannot be resolved.

        Uses the instance set at attach time when available; otherwise
        loads the record through this attachment's session.
        """
        record = getattr(self, "_record", None)
        if record is not None:
            return record

        record_class = mapped_class(self.record_type)
        session = object_session(self)
        if record_class is None or session is None:
            return None

        record = session.get(record_class, self.record_id)
        self._record = record
        return record

    @record.setter
    def record(self, record: Any) -> None:
        self.record_type = type(record).__name__
        self.record_id = record.id
        self._record = record

    def cache_record(self, record: Any) -> None:
        """Remember the in-memory owner without touching mapped columns."""
        self._record = record

    @property
    def filename(self) -> str:
        return self.blob.filename

    @property
    def content_type(self) -> str | None:
        return self.blob.content_type

    @property
    def byte_size(self) -> int:
        return self.blob.byte_size

    @property
    def destroyed(self) -> bool:
        """True once the deletion of this attachment has been flushed."""
        return inspect(self).was_deleted

    def __repr__(self) -> str:
        return f"<Attachment {self.record_type}#{self.record_id} {self.name!r}>"
