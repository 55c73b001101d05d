"""Callback execution for a single record.

Resolves the callbacks registered on the record's class for a phase and
attachment name, then runs them sequentially in registration order. The
first failure is logged once with its context and re-raised unchanged;
callbacks after it do not run.
"""

import logging
from typing import Any

from after_attached.callbacks.invoker import invoke_callback
from after_attached.callbacks.types import Phase

logger = logging.getLogger(__name__)


def run_attachment_callbacks(record: Any, phase: Phase, attachment: Any) -> int:
    """Run every callback registered for ``phase`` and ``attachment.name``.

    Args:
        record: Instance of an AttachmentCallbacks class owning the attachment
        phase: The lifecycle point being dispatched
        attachment: The attachment passed to each callback

    Returns:
        Number of callbacks that ran.
    """
    record_class = type(record)
    callbacks = record_class.attachment_callbacks(phase, attachment.name)
    if not callbacks:
        return 0

    try:
        for spec in callbacks:
            invoke_callback(spec, record, attachment)
    except Exception as e:
        logger.error(
            "%s callback failed on %s#%s: %s",
            phase.value,
            record_class.__name__,
            attachment.name,
            e,
        )
        raise

    return len(callbacks)
