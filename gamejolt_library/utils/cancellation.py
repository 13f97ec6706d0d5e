"""Cooperative cancellation shared by every enumeration entry point."""

import logging

from ..errors import SyncCancelled

logger = logging.getLogger(__name__)


class CancelToken:
    """A flag checked at each loop iteration of a sync.

    Setting it never interrupts an in-flight request; the next call to
    raise_if_cancelled() unwinds the work instead.
    """

    def __init__(self):
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if not self._cancelled:
            logger.info("Cancellation requested")
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise SyncCancelled()
