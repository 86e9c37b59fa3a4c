"""
Argtree cancellation context.

Overview
- Context: a cancellable scope handed to every executing command.
  • cancel(error) marks it done exactly once; the first caller's error wins.
  • Derived contexts follow their parent: cancelling a parent cancels every child
    with the parent's error. A child detaches from its parent once it is done.
  • Long-running commands poll `done`, block on wait(), or call check() to raise.

- background(): a fresh root context that nothing else can cancel.

Thread-safety
- All state transitions happen under a lock; callbacks run outside it, on the
  thread that cancelled.
"""
import threading

from .utils import Unset, coalesce


class Cancelled(Exception):
    """
    default cancellation cause.
    """

    def __init__(self, message="context cancelled", /):
        super().__init__(message)


class Context:
    """
    cancellable scope, optionally derived from a parent.

    parameters
    - parent: Context | Unset. When given, this context is cancelled as soon as the
      parent is, carrying the parent's error.
    """

    def __init__(self, parent=Unset, /):
        if not isinstance(parent, Context | Unset):
            raise TypeError("Context parent must be a context")
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._error = None
        self._callbacks = []
        self._parent = coalesce(parent)
        if self._parent is not None:
            self._parent.add_done_callback(self._propagate)

    @property
    def done(self):
        return self._event.is_set()

    @property
    def error(self):
        with self._lock:
            return self._error

    def cancel(self, error=Unset, /):
        """
        mark the context done; returns False when it already was.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._error = coalesce(error, Cancelled())
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        if self._parent is not None:
            self._parent.remove_done_callback(self._propagate)
        for callback in callbacks:
            callback(self)
        return True

    def wait(self, timeout=None, /):
        return self._event.wait(timeout)

    def check(self):
        if error := self.error:
            raise error

    def add_done_callback(self, callback, /):
        """
        call callback(context) once the context is done (immediately when it already is).
        """
        if not callable(callback):
            raise TypeError("add_done_callback() argument must be callable")
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def remove_done_callback(self, callback, /):
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
            return True

    def _propagate(self, parent):
        self.cancel(parent.error)

    def __repr__(self):
        return "Context(done=%r, error=%r)" % (self.done, self.error)


def background():
    return Context()


__all__ = (
    "Cancelled",
    "Context",
    "background",
)
