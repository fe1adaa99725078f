"""Per-run cancellation token checked at every suspension point."""

import threading
from typing import Callable


class RunToken:
    """Identity and cancellation flag for one run.

    A token is dead once ``cancel()`` was called or once ``is_live`` reports
    that a newer run has taken over. Dead runs must stop without touching
    shared state.
    """

    def __init__(self, run_id: int, is_live: Callable[[int], bool] | None = None):
        self.run_id = run_id
        self._is_live = is_live
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._is_live is not None and not self._is_live(self.run_id)

    def sleep(self, seconds: float) -> bool:
        """Wait up to ``seconds``; wakes early on cancel. Returns False if dead."""
        if seconds > 0 and not self._event.is_set():
            self._event.wait(seconds)
        return not self.cancelled
