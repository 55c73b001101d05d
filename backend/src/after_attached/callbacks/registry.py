"""Callback registry for attachment lifecycle callbacks.

Classes opt in by mixing in ``AttachmentCallbacks``. Each class keeps its
own immutable ``RegistryTable`` in a class attribute; a subclass reads its
parent's table until it registers something itself, at which point a new
table is stored on the subclass only.

Two registration styles are supported:

    class Document(AttachmentCallbacks, Base):
        @after_attached("file")
        def process_file(self, attachment):
            ...

    Document.after_attached("image", callback=lambda doc, attachment: ...)
"""

from types import FunctionType
from typing import Any, Callable

from after_attached.callbacks.service import run_attachment_callbacks
from after_attached.callbacks.types import (
    CallbackSpec,
    Closure,
    ConfigurationError,
    NamedMethod,
    Phase,
    RegistryTable,
)

_DECLARED_ATTR = "__attachment_callbacks__"


def _build_spec(method: str | None, callback: Callable | None) -> CallbackSpec:
    if method is None and callback is None:
        raise ConfigurationError("Must provide either a method name or a block")
    if method is not None and callback is not None:
        raise ConfigurationError(
            "Provide either a method name or a block, not both"
        )
    if method is not None:
        if not isinstance(method, str) or not method:
            raise ConfigurationError(
                f"Method name must be a non-empty string, got {method!r}"
            )
        return NamedMethod(method)
    if not callable(callback):
        raise ConfigurationError(f"Callback must be callable, got {callback!r}")
    return Closure(callback)


class AttachmentCallbacks:
    """Mixin giving a record class attachment lifecycle callbacks.

    Being an instance of this class is what makes a record eligible for
    dispatch; records of other classes are skipped without error.
    """

    _attachment_callbacks = RegistryTable()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Methods marked with the module-level decorators, in definition order
        for attr_name, value in list(vars(cls).items()):
            if not isinstance(value, FunctionType):
                continue
            for phase, name in getattr(value, _DECLARED_ATTR, ()):
                cls.register_attachment_callback(phase, name, attr_name)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @classmethod
    def before_attached(
        cls, name: Any, method: str | None = None, *, callback: Callable | None = None
    ) -> None:
        """Run ``method`` or ``callback`` before an attachment called ``name`` is saved."""
        cls.register_attachment_callback(Phase.BEFORE_ATTACHED, name, method, callback)

    @classmethod
    def after_attached(
        cls, name: Any, method: str | None = None, *, callback: Callable | None = None
    ) -> None:
        """Run ``method`` or ``callback`` after an attachment called ``name`` is committed."""
        cls.register_attachment_callback(Phase.AFTER_ATTACHED, name, method, callback)

    @classmethod
    def before_detached(
        cls, name: Any, method: str | None = None, *, callback: Callable | None = None
    ) -> None:
        """Run ``method`` or ``callback`` before an attachment called ``name`` is removed."""
        cls.register_attachment_callback(Phase.BEFORE_DETACHED, name, method, callback)

    @classmethod
    def after_detached(
        cls, name: Any, method: str | None = None, *, callback: Callable | None = None
    ) -> None:
        """Run ``method`` or ``callback`` after the removal of ``name`` is committed."""
        cls.register_attachment_callback(Phase.AFTER_DETACHED, name, method, callback)

    @classmethod
    def register_attachment_callback(
        cls,
        phase: Phase,
        name: Any,
        method: str | None = None,
        callback: Callable | None = None,
    ) -> None:
        """Append a callback for (phase, name) on this class only.

        Args:
            phase: Lifecycle point to bind to
            name: Attachment name; converted with str()
            method: Name of a method on the record taking the attachment
            callback: Callable taking (record, attachment)

        Raises:
            ConfigurationError: Unless exactly one of method/callback is given
        """
        spec = _build_spec(method, callback)
        cls._attachment_callbacks = cls._attachment_callbacks.with_callback(
            phase, str(name), spec
        )

    @classmethod
    def attachment_callbacks(cls, phase: Phase, name: Any) -> tuple[CallbackSpec, ...]:
        """Callbacks registered for (phase, name), in registration order."""
        return cls._attachment_callbacks.callbacks_for(phase, str(name))

    @classmethod
    def reset_attachment_callbacks(cls) -> None:
        """Drop every callback visible on this class. Primarily for testing."""
        cls._attachment_callbacks = RegistryTable()

    # ------------------------------------------------------------------
    # Dispatch entry points
    # ------------------------------------------------------------------

    def run_attachment_callbacks(self, phase: Phase, attachment: Any) -> int:
        return run_attachment_callbacks(self, phase, attachment)

    def run_before_attached_callbacks(self, attachment: Any) -> int:
        return run_attachment_callbacks(self, Phase.BEFORE_ATTACHED, attachment)

    def run_after_attached_callbacks(self, attachment: Any) -> int:
        return run_attachment_callbacks(self, Phase.AFTER_ATTACHED, attachment)

    def run_before_detached_callbacks(self, attachment: Any) -> int:
        return run_attachment_callbacks(self, Phase.BEFORE_DETACHED, attachment)

    def run_after_detached_callbacks(self, attachment: Any) -> int:
        return run_attachment_callbacks(self, Phase.AFTER_DETACHED, attachment)


def _declare(phase: Phase, name: Any) -> Callable[[Callable], Callable]:
    def decorator(fn: Callable) -> Callable:
        declared = getattr(fn, _DECLARED_ATTR, ())
        setattr(fn, _DECLARED_ATTR, declared + ((phase, str(name)),))
        return fn

    return decorator


def before_attached(name: Any) -> Callable[[Callable], Callable]:
    """Decorator form of ``AttachmentCallbacks.before_attached``.

    Usage:
        class Document(AttachmentCallbacks, Base):
            @before_attached("file")
            def check_file(self, attachment):
                ...
    """
    return _declare(Phase.BEFORE_ATTACHED, name)


def after_attached(name: Any) -> Callable[[Callable], Callable]:
    """Decorator form of ``AttachmentCallbacks.after_attached``."""
    return _declare(Phase.AFTER_ATTACHED, name)


def before_detached(name: Any) -> Callable[[Callable], Callable]:
    """Decorator form of ``AttachmentCallbacks.before_detached``."""
    return _declare(Phase.BEFORE_DETACHED, name)


def after_detached(name: Any) -> Callable[[Callable], Callable]:
    """Decorator form of ``AttachmentCallbacks.after_detached``."""
    return _declare(Phase.AFTER_DETACHED, name)
