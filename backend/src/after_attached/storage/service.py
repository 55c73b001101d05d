"""Attach and detach blobs on records within a caller-owned session.

Has-one attachments replace whatever is attached under the same name:
the old attachment is deleted and flushed before the new one is added,
so its detach callbacks run ahead of the new attachment's attach
callbacks. Has-many attachments are appended.

The service never commits; callers control the transaction.
"""

import hashlib
import uuid
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from after_attached.storage.models import Attachment, Blob


class AttachmentService:
    """Manages attachments for records mapped on ``Base``.

    Records must have an integer ``id`` primary key.
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_persisted(self, record: Any) -> None:
        """Flush ``record`` so it has a primary key to reference."""
        if record.id is None:
            self.session.add(record)
            self.session.flush()

    def _add(self, record: Any, name: str, blob: Blob) -> Attachment:
        attachment = Attachment(name=name, blob=blob)
        attachment.record = record
        self.session.add(attachment)
        return attachment

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_blob(
        self,
        content: bytes,
        filename: str,
        content_type: str | None = None,
    ) -> Blob:
        """Store ``content`` as a new Blob (added to the session, not flushed)."""
        blob = Blob(
            key=uuid.uuid4().hex,
            filename=filename,
            content_type=content_type,
            byte_size=len(content),
            checksum=hashlib.sha256(content).hexdigest(),
            data=content,
        )
        self.session.add(blob)
        return blob

    def attach_one(self, record: Any, name: Any, blob: Blob) -> Attachment:
        """Attach ``blob`` as the single attachment called ``name``.

        Any attachment already present under ``name`` is detached first.

        Within one transaction a replacement runs callbacks in the order
        before_detached(old), before_attached(new), after_detached(old),
        after_attached(new): both after callbacks wait for the commit.
        Callers that need each before/after pair to complete in turn
        should commit between ``detach`` and ``attach_one``.
        """
        name = str(name)
        self._ensure_persisted(record)

        existing = self.attachments_for(record, name)
        for attachment in existing:
            self.session.delete(attachment)
        if existing:
            self.session.flush()

        return self._add(record, name, blob)

    def attach_many(
        self, record: Any, name: Any, blobs: Iterable[Blob]
    ) -> list[Attachment]:
        """Append one attachment per blob under ``name``, in order."""
        name = str(name)
        self._ensure_persisted(record)
        return [self._add(record, name, blob) for blob in blobs]

    def detach(self, attachment: Attachment) -> None:
        """Mark ``attachment`` for deletion at the next flush."""
        self.session.delete(attachment)

    def attachments_for(self, record: Any, name: Any) -> list[Attachment]:
        """Attachments of ``record`` called ``name``, oldest first."""
        if record.id is None:
            return []

        stmt = (
            select(Attachment)
            .where(
                Attachment.record_type == type(record).__name__,
                Attachment.record_id == record.id,
                Attachment.name == str(name),
            )
            .order_by(Attachment.id)
        )
        attachments = list(self.session.scalars(stmt))
        for attachment in attachments:
            attachment.cache_record(record)
        return attachments

    def attachment_for(self, record: Any, name: Any) -> Attachment | None:
        """The first attachment called ``name``, or None."""
        attachments = self.attachments_for(record, name)
        return attachments[0] if attachments else None

    def attached(self, record: Any, name: Any) -> bool:
        return bool(self.attachments_for(record, name))
