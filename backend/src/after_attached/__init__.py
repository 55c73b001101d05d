"""Attachment lifecycle callbacks for record classes.

Lets a model class register callbacks that run when a file attachment is
attached to or detached from one of its records:
- before_attached: before the attachment is persisted (can abort)
- after_attached: after the creating transaction commits
- before_detached: before the attachment is removed (can abort)
- after_detached: after the removing transaction commits

Usage:
    from after_attached import AttachmentCallbacks, after_attached
    from after_attached.storage import Base

    class Document(AttachmentCallbacks, Base):
        __tablename__ = "documents"
        id: Mapped[int] = mapped_column(primary_key=True)

        @after_attached("file")
        def process_file(self, attachment):
            ...

    Document.after_detached("file", callback=lambda doc, attachment: ...)
"""

from after_attached.callbacks import (
    AfterAttachedError,
    AttachmentCallbacks,
    ConfigurationError,
    Phase,
    after_attached,
    after_detached,
    before_attached,
    before_detached,
    dispatch,
)

__version__ = "0.1.0"

__all__ = [
    "AfterAttachedError",
    "AttachmentCallbacks",
    "ConfigurationError",
    "Phase",
    "__version__",
    "after_attached",
    "after_detached",
    "before_attached",
    "before_detached",
    "dispatch",
]
