"""A base class for a worker that runs in its own thread until told to stop."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class WorkerThread:
    """Runs work() in a background thread; work() should poll is_exit()."""

    def __init__(self) -> None:
        self._exit = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start a thread that calls work()."""
        if self._thread is not None:
            raise RuntimeError("thread already started")
        thread = threading.Thread(target=self._run, name=type(self).__name__, daemon=True)
        thread.start()
        self._thread = thread
        logger.info("[%r] start, thread ok, ident=%s.", self, thread.ident)

    def _run(self) -> None:
        try:
            self.work()
        except Exception:
            logger.exception("[%r] work failed.", self)

    def stop(self) -> None:
        """Ask the worker to exit, wait for it, then call clear()."""
        if self._thread is None:
            return
        logger.info("[%r] stop, ident=%s.", self, self._thread.ident)
        self._exit.set()
        self._thread.join()
        self._thread = None
        self.clear()

    def is_exit(self) -> bool:
        """True once stop() has been requested."""
        return self._exit.is_set()

    def work(self) -> None:
        """The thread body; the base version does nothing."""

    def clear(self) -> None:
        """Release resources after the thread has finished; a hook."""