"""SQLAlchemy storage for blobs and attachments."""

from after_attached.storage.config import DatabaseConfig, create_session_factory
from after_attached.storage.events import (
    install_attachment_callbacks,
    uninstall_attachment_callbacks,
)
from after_attached.storage.models import Attachment, Base, Blob
from after_attached.storage.service import AttachmentService

__all__ = [
    "Attachment",
    "AttachmentService",
    "Base",
    "Blob",
    "DatabaseConfig",
    "create_session_factory",
    "install_attachment_callbacks",
    "uninstall_attachment_callbacks",
]
