"""Synchronous, ordered event notifications."""

from typing import Any, Callable, List


class Event:
    """An ordered list of callbacks invoked at a state transition.

    Listeners run synchronously on the calling thread, in the order they
    were added. An exception raised by a listener propagates to the caller
    of invoke() and the remaining listeners are not run.

    Usage:
        on_trial_end = Event("on_trial_end")
        on_trial_end.add_listener(lambda trial: print(trial.number))
        on_trial_end.invoke(trial)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: List[Callable[..., Any]] = []

    def add_listener(self, callback: Callable[..., Any]) -> None:
        """Register a callback. Adding the same callback twice runs it twice."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[..., Any]) -> bool:
        """Remove the first registration of a callback.

        Returns:
            True if the callback was removed, False if not registered
        """
        try:
            self._listeners.remove(callback)
        except ValueError:
            return False
        return True

    def invoke(self, *args: Any) -> None:
        """Call every listener with the given arguments."""
        # Copy so listeners may add/remove listeners while running
        for callback in list(self._listeners):
            callback(*args)

    def __len__(self) -> int:
        return len(self._listeners)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, listeners={len(self._listeners)})"
