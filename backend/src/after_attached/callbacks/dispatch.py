"""Dispatch triggers called by the host persistence framework.

One trigger per phase, each taking the attachment whose lifecycle event is
firing. A trigger runs the owning record's callbacks at most once per
attachment instance and phase, because hosts may invoke the same lifecycle
hook more than once for a single logical event.

Attachments must expose ``name`` and ``record``. The guard state is stored
on the attachment itself and lives as long as that instance.
"""

import logging
from typing import Any, Protocol, runtime_checkable

from after_attached.callbacks.registry import AttachmentCallbacks
from after_attached.callbacks.types import DispatchState, Phase

logger = logging.getLogger(__name__)

_STATE_ATTR = "_attachment_dispatch_state"


@runtime_checkable
class AttachmentEvent(Protocol):
    """Interface the host's attachment objects must provide."""

    name: str

    @property
    def record(self) -> Any: ...


def dispatch_state(attachment: Any) -> DispatchState:
    """Return the guard state for ``attachment``, creating it on first use."""
    state = getattr(attachment, _STATE_ATTR, None)
    if state is None:
        state = DispatchState()
        setattr(attachment, _STATE_ATTR, state)
    return state


def dispatch(phase: Phase, attachment: Any) -> int:
    """Run the callbacks for ``phase`` on the record owning ``attachment``.

    Returns:
        Number of callbacks that ran (0 for repeat calls, records without
        callback support, or nothing registered).

    Raises:
        Whatever the first failing callback raised.
    """
    if not dispatch_state(attachment).claim(phase):
        logger.debug("%s already dispatched for %r, skipping", phase.value, attachment)
        return 0

    record = attachment.record
    if record is None or not isinstance(record, AttachmentCallbacks):
        return 0

    return record.run_attachment_callbacks(phase, attachment)


def trigger_before_attached(attachment: Any) -> None:
    """Wire to the host's pre-create hook."""
    dispatch(Phase.BEFORE_ATTACHED, attachment)


def trigger_after_attached(attachment: Any) -> None:
    """Wire to the host's post-create-commit hook."""
    dispatch(Phase.AFTER_ATTACHED, attachment)


def trigger_before_detached(attachment: Any) -> None:
    """Wire to the host's pre-destroy hook."""
    dispatch(Phase.BEFORE_DETACHED, attachment)


def trigger_after_detached(attachment: Any) -> None:
    """Wire to the host's post-destroy-commit hook."""
    dispatch(Phase.AFTER_DETACHED, attachment)


TRIGGERS = {
    Phase.BEFORE_ATTACHED: trigger_before_attached,
    Phase.AFTER_ATTACHED: trigger_after_attached,
    Phase.BEFORE_DETACHED: trigger_before_detached,
    Phase.AFTER_DETACHED: trigger_after_detached,
}
