"""Progress tracking module.

Wraps tqdm for progress-bar display of the normalization stages.
"""

import logging
import sys
from typing import Callable, Optional

from tqdm import tqdm

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Display and track progress for long-running operations.

    Can be used as a context manager::

        with ProgressTracker(total=5, description="Normalizing") as p:
            for stage in stages:
                p.set_description(stage.name)
                stage.run()
                p.update()

    An optional *callback* receives ``(current, total, description)`` after
    every update, for callers that report progress somewhere other than a
    terminal.
    """

    def __init__(
        self,
        total: int,
        description: str = "Processing",
        callback: Optional[Callable[[int, int, str], None]] = None,
        disable: bool = False,
    ) -> None:
        """Initialise the progress tracker.

        Args:
            total: Total number of steps.
            description: Human-readable description shown alongside
                the progress bar.
            callback: Called with ``(current, total, description)`` after
                each update.
            disable: Hide the bar (the callback still fires).
        """
        self.total = total
        self.description = description
        self._callback = callback
        self._current = 0
        self._closed = False
        self._bar = tqdm(
            total=total,
            desc=description,
            unit="stage",
            file=sys.stderr,
            disable=disable,
        )

    @property
    def current(self) -> int:
        return self._current

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def update(self, n: int = 1) -> None:
        """Advance the progress bar by *n* steps."""
        if self._closed:
            return

        self._current += n
        self._bar.update(n)
        if self._callback is not None:
            try:
                self._callback(self._current, self.total, self.description)
            except Exception:
                logger.debug("Progress callback raised; ignoring.", exc_info=True)

    def set_description(self, desc: str) -> None:
        """Update the progress description text."""
        self.description = desc
        self._bar.set_description(desc)

    def close(self) -> None:
        """Close the progress bar and release resources."""
        if self._closed:
            return
        self._closed = True
        self._bar.close()

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "ProgressTracker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
