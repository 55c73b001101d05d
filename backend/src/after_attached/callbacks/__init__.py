"""Attachment callback registry and dispatch core."""

from after_attached.callbacks.dispatch import (
    TRIGGERS,
    AttachmentEvent,
    dispatch,
    dispatch_state,
    trigger_after_attached,
    trigger_after_detached,
    trigger_before_attached,
    trigger_before_detached,
)
from after_attached.callbacks.invoker import invoke_callback
from after_attached.callbacks.registry import (
    AttachmentCallbacks,
    after_attached,
    after_detached,
    before_attached,
    before_detached,
)
from after_attached.callbacks.service import run_attachment_callbacks
from after_attached.callbacks.types import (
    AfterAttachedError,
    CallbackSpec,
    Closure,
    ConfigurationError,
    DispatchState,
    NamedMethod,
    Phase,
    RegistryTable,
)

__all__ = [
    "AfterAttachedError",
    "AttachmentCallbacks",
    "AttachmentEvent",
    "CallbackSpec",
    "Closure",
    "ConfigurationError",
    "DispatchState",
    "NamedMethod",
    "Phase",
    "RegistryTable",
    "TRIGGERS",
    "after_attached",
    "after_detached",
    "before_attached",
    "before_detached",
    "dispatch",
    "dispatch_state",
    "invoke_callback",
    "run_attachment_callbacks",
    "trigger_after_attached",
    "trigger_after_detached",
    "trigger_before_attached",
    "trigger_before_detached",
]
