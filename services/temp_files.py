"""
Delayed, guaranteed removal of temporary print files.

The OS print subsystem reads the PDF asynchronously after the print
command returns, so the file has to outlive the print call for a short
while. TempFileReaper turns that into a scoped resource:

    with reaper.scoped(pdf_path):
        render(pdf_path)
        send_to_printer(pdf_path)
    # deletion is now scheduled, whatever happened inside the block

Deletion runs delay_seconds later on a daemon timer thread. A delay of 0
removes the file synchronously on scope exit. Files that are already
gone are skipped.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List

from logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_DELAY_SECONDS = 5.0


class TempFileReaper:
    """
    Schedules and tracks temp file deletions.

    Thread Safety:
        - Timers are tracked in a dict guarded by a lock
        - Scheduling the same path twice replaces the earlier timer
    """

    def __init__(self, delay_seconds: float = DEFAULT_DELAY_SECONDS):
        self.delay_seconds = delay_seconds
        self._timers: Dict[Path, threading.Timer] = {}
        self._lock = threading.Lock()

    @contextmanager
    def scoped(self, path: Path) -> Iterator[Path]:
        """Yield path and schedule its deletion on every exit path."""
        try:
            yield path
        finally:
            self.schedule(path)

    def schedule(self, path: Path) -> None:
        """Remove path after delay_seconds (immediately if the delay is 0)."""
        path = Path(path)
        if self.delay_seconds <= 0:
            self._remove(path)
            return

        timer = threading.Timer(self.delay_seconds, self._remove, args=(path,))
        timer.daemon = True
        timer.name = f"Reaper-{path.name}"

        with self._lock:
            previous = self._timers.pop(path, None)
            self._timers[path] = timer
        if previous is not None:
            previous.cancel()

        timer.start()
        logger.debug(f"Scheduled removal of {path} in {self.delay_seconds:.0f}s")

    def pending(self) -> List[Path]:
        """Paths whose deletion is scheduled but has not run yet."""
        with self._lock:
            return list(self._timers)

    def flush(self) -> int:
        """
        Cancel all timers and remove their files now.

        Call this during application shutdown.

        Returns:
            Number of paths processed
        """
        with self._lock:
            timers = dict(self._timers)
            self._timers.clear()

        for path, timer in timers.items():
            timer.cancel()
            self._remove(path)

        if timers:
            logger.info(f"Flushed {len(timers)} pending temp files")
        return len(timers)

    def _remove(self, path: Path) -> None:
        with self._lock:
            timer = self._timers.get(path)
            if timer is not None and timer is threading.current_thread():
                del self._timers[path]

        try:
            path.unlink()
            logger.info(f"Removed {path}")
        except FileNotFoundError:
            logger.debug(f"{path} already removed")
        except OSError as e:
            logger.warning(f"Could not remove {path}: {e}")
