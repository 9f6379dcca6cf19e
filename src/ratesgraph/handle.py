"""
Handles: shared, optionally relinkable indirection over observables.

Consumers register with the handle, never with the object behind it, so
that relinking the handle to a different object reaches them exactly like a
change of the object itself.

All copies obtained from a RelinkableHandle (see RelinkableHandle.handle())
share one link cell; every freshly constructed handle gets its own cell, so
two independently created handles are never linked together.
"""

import logging
from typing import Generic, Optional, TypeVar

from .errors import EmptyHandleError
from .observer import Callback, Observable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Link(Observable):
    """The shared mutable cell behind one or more handles."""

    def __init__(self, target=None, register_as_observer: bool = True):
        super().__init__()
        self._target = None
        self._is_observer = False
        self.link_to(target, register_as_observer, notify=False)

    @property
    def target(self):
        return self._target

    def link_to(self, target, register_as_observer: bool = True, notify: bool = True) -> None:
        if target is self._target and register_as_observer == self._is_observer:
            return

        if self._target is not None and self._is_observer:
            self._target.unregister_with(self.update)

        self._target = target
        self._is_observer = register_as_observer and target is not None

        if self._is_observer:
            target.register_with(self.update)

        if notify:
            self.notify_observers()

    def update(self) -> None:
        self.notify_observers()


class Handle(Generic[T]):
    """
    Fixed handle: a constant binding to an observable object.

    Attributes:
        register_as_observer: Whether changes of the target are forwarded
            to the handle's observers
    """

    def __init__(self, target: T, register_as_observer: bool = True):
        if target is None:
            raise ValueError("cannot bind a handle to None; use Handle.empty() for an empty handle")
        self._link = _Link(target, register_as_observer)

    @classmethod
    def empty(cls) -> "Handle":
        """Create an explicitly empty handle."""
        handle = cls.__new__(cls)
        handle._link = _Link(None)
        return handle

    @classmethod
    def _sharing(cls, link: _Link) -> "Handle":
        handle = cls.__new__(cls)
        handle._link = link
        return handle

    @property
    def is_empty(self) -> bool:
        """True if the handle points to nothing."""
        return self._link.target is None

    def current_link(self) -> T:
        """
        Dereference the handle.

        Raises:
            EmptyHandleError: if the handle is empty
        """
        target = self._link.target
        if target is None:
            raise EmptyHandleError("empty Handle cannot be dereferenced")
        return target

    @property
    def link(self) -> T:
        """Alias of current_link()."""
        return self.current_link()

    def register_with(self, callback: Callback) -> bool:
        return self._link.register_with(callback)

    def unregister_with(self, callback: Callback) -> bool:
        return self._link.unregister_with(callback)

    def linked_with(self, other: "Handle") -> bool:
        """True if both handles share the same link cell."""
        return isinstance(other, Handle) and self._link is other._link

    def __eq__(self, other):
        if not isinstance(other, Handle):
            return NotImplemented
        return self._link is other._link

    def __hash__(self):
        return id(self._link)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._link.target!r})"


class RelinkableHandle(Handle[T]):
    """
    Handle whose target can be reassigned after construction.

    Every construction creates a new, independent link cell; pass
    handle() to consumers that must see relinks but not perform them.
    """

    def __init__(self, target: Optional[T] = None, register_as_observer: bool = True):
        self._link = _Link(target, register_as_observer)

    def link_to(self, target: Optional[T], register_as_observer: bool = True) -> None:
        """
        Rebind the handle and notify its observers.

        Relinking to the current target (with the same observer flag) is a
        no-op; linking to None empties the handle.
        """
        logger.debug("relinking %s -> %r", type(self).__name__, target)
        self._link.link_to(target, register_as_observer)

    def handle(self) -> Handle[T]:
        """Read-only handle sharing this handle's link cell."""
        return Handle._sharing(self._link)


__all__ = [
    "Handle",
    "RelinkableHandle",
]
