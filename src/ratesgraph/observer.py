"""
Observer pattern: the notification substrate of the market-data graph.

An Observable keeps a registry of observer callbacks keyed by a stable
identity token. Bound methods are held weakly (a collected observer silently
drops out of the registry); plain functions and closures are held strongly.

Notification is synchronous. If an observer raises, the pass is aborted and
the exception propagates to whoever called notify_observers(): callers must
not rely on the remaining observers having fired.
"""

import logging
import weakref
from typing import Callable, Dict, Hashable, List, Tuple, Union

from .errors import CyclicDependencyError

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


def _callback_key(callback: Callback) -> Hashable:
    """Identity token for a callback (bound methods keyed by instance + function)."""
    owner = getattr(callback, "__self__", None)
    func = getattr(callback, "__func__", None)
    if owner is not None and func is not None:
        return (id(owner), id(func))
    return id(callback)


class Observable:
    """
    Publish side of the observer pattern.

    Callbacks are registered with register_with() and invoked, in no
    guaranteed order, by notify_observers().
    """

    def __init__(self):
        self._observers: Dict[Hashable, Union[weakref.WeakMethod, Callback]] = {}
        self._notifying = False

    def register_with(self, callback: Callback) -> bool:
        """
        Register a callback.

        Args:
            callback: Zero-argument callable (usually an observer's update)

        Returns:
            False if the callback was already registered
        """
        if not callable(callback):
            raise TypeError(f"observer callback must be callable, got {callback!r}")

        key = _callback_key(callback)
        existing = self._observers.get(key)
        if existing is not None and self._resolve(existing) is not None:
            return False

        if hasattr(callback, "__self__") and hasattr(callback, "__func__"):
            self._observers[key] = weakref.WeakMethod(callback)
        else:
            self._observers[key] = callback
        logger.debug("%s: registered observer %r", type(self).__name__, callback)
        return True

    def unregister_with(self, callback: Callback) -> bool:
        """
        Unregister a callback.

        Returns:
            False if the callback was not registered
        """
        return self._observers.pop(_callback_key(callback), None) is not None

    def notify_observers(self) -> None:
        """
        Invoke every registered callback.

        Raises:
            CyclicDependencyError: if a callback (directly or indirectly)
                makes this observable notify again
        """
        if self._notifying:
            raise CyclicDependencyError(
                f"{type(self).__name__} re-entered its own notification: "
                "the dependency graph contains a cycle"
            )

        self._notifying = True
        try:
            for callback in self._live_callbacks():
                callback()
        finally:
            self._notifying = False

    @property
    def observer_count(self) -> int:
        """Number of live registered callbacks."""
        return len(self._live_callbacks())

    def _live_callbacks(self) -> List[Callback]:
        # snapshot, pruning collected observers
        live = []
        dead = []
        for key, entry in self._observers.items():
            callback = self._resolve(entry)
            if callback is None:
                dead.append(key)
            else:
                live.append(callback)
        for key in dead:
            del self._observers[key]
        return live

    @staticmethod
    def _resolve(entry):
        if isinstance(entry, weakref.WeakMethod):
            return entry()
        return entry


class Observer:
    """
    Subscribe side of the observer pattern.

    Keeps track of the observables it registered with so that it can detach
    from all of them at once.
    """

    def __init__(self):
        self._observed: List[Tuple[Observable, Callback]] = []

    def observe(self, observable, callback: Callback = None) -> bool:
        """
        Register update() (or the given callback) with an observable.

        Args:
            observable: Anything exposing register_with (Observable, Handle)
            callback: Callback to register; defaults to self.update

        Returns:
            False if already registered
        """
        callback = callback or self.update
        added = observable.register_with(callback)
        if added:
            self._observed.append((observable, callback))
        return added

    def stop_observing(self, observable) -> bool:
        """Unregister from a single observable."""
        removed = False
        remaining = []
        for obs, callback in self._observed:
            if obs is observable:
                removed = obs.unregister_with(callback) or removed
            else:
                remaining.append((obs, callback))
        self._observed = remaining
        return removed

    def unregister_with_all(self) -> None:
        """Unregister from every observable this observer registered with."""
        for obs, callback in self._observed:
            obs.unregister_with(callback)
        self._observed = []

    def update(self) -> None:
        """Called when an observed object changes."""
        raise NotImplementedError


__all__ = [
    "Callback",
    "Observable",
    "Observer",
]
