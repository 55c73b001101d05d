"""Wires the attachment callback triggers into SQLAlchemy session events.

- before_flush: before_detached for deleted attachments, then
  before_attached for new ones (same transaction, can abort the flush)
- after_flush: queues after_detached / after_attached on the innermost
  savepoint, or on the root transaction when there is none
- after_commit: a released savepoint hands its queue to the enclosing
  transaction; the root transaction fires its queue in order
- after_transaction_end: a transaction that ended without committing
  discards its own queue and nothing else

Owning records are resolved in before_flush, while the session can still
emit SQL, and cached on each attachment for the after-commit phase.
"""

import logging
from typing import Any, Iterable

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from after_attached.callbacks.dispatch import (
    TRIGGERS,
    trigger_before_attached,
    trigger_before_detached,
)
from after_attached.callbacks.types import Phase
from after_attached.storage.models import Attachment

logger = logging.getLogger(__name__)

PENDING_KEY = "after_attached.pending"
RELEASED_KEY = "after_attached.released"


def _attachments(objects: Iterable[Any]) -> list[Attachment]:
    return [obj for obj in objects if isinstance(obj, Attachment)]


def _owner(transaction: SessionTransaction) -> SessionTransaction:
    """Nearest savepoint or root at or above ``transaction``.

    Flush subtransactions are skipped; they never own queued events.
    """
    while not transaction.nested and transaction.parent is not None:
        transaction = transaction.parent
    return transaction


def _current_owner(session: Session) -> SessionTransaction:
    return session.get_nested_transaction() or session.get_transaction()


def _pending(session: Session) -> dict[SessionTransaction, list]:
    return session.info.setdefault(PENDING_KEY, {})


def _before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    deleted = _attachments(session.deleted)
    new = _attachments(session.new)

    for attachment in deleted + new:
        attachment.record  # noqa: B018 - resolve and cache the owner

    for attachment in deleted:
        trigger_before_detached(attachment)
    for attachment in new:
        trigger_before_attached(attachment)


def _after_flush(session: Session, flush_context: Any) -> None:
    # session.new / session.deleted still hold their pre-flush state here
    queue = _pending(session).setdefault(_current_owner(session), [])
    queue.extend(
        (Phase.AFTER_DETACHED, attachment)
        for attachment in _attachments(session.deleted)
    )
    queue.extend(
        (Phase.AFTER_ATTACHED, attachment)
        for attachment in _attachments(session.new)
    )


def _after_commit(session: Session) -> None:
    transaction = _current_owner(session)
    if transaction.nested:
        # Savepoint released; its queue moves up in after_transaction_end
        session.info.setdefault(RELEASED_KEY, set()).add(transaction)
        return

    queue = _pending(session).pop(transaction, [])
    for phase, attachment in queue:
        TRIGGERS[phase](attachment)


def _after_transaction_end(session: Session, transaction: SessionTransaction) -> None:
    if not transaction.nested and transaction.parent is not None:
        return

    queue = _pending(session).pop(transaction, None)
    released = session.info.get(RELEASED_KEY, set())
    if transaction in released:
        released.discard(transaction)
        if queue:
            _pending(session).setdefault(_owner(transaction.parent), []).extend(queue)
        return

    if queue:
        logger.debug(
            "Rollback discarded %d pending attachment callback(s)", len(queue)
        )


_LISTENERS = (
    ("before_flush", _before_flush),
    ("after_flush", _after_flush),
    ("after_commit", _after_commit),
    ("after_transaction_end", _after_transaction_end),
)


def install_attachment_callbacks(target: Any = Session) -> None:
    """Register the attachment lifecycle listeners on ``target``.

    Args:
        target: A Session class, Session instance or sessionmaker.
            Defaults to every Session.

    Installing twice on the same target is a no-op.
    """
    if event.contains(target, "before_flush", _before_flush):
        return
    for identifier, fn in _LISTENERS:
        event.listen(target, identifier, fn)


def uninstall_attachment_callbacks(target: Any = Session) -> None:
    """Remove listeners previously added by install_attachment_callbacks."""
    for identifier, fn in _LISTENERS:
        if event.contains(target, identifier, fn):
            event.remove(target, identifier, fn)
