"""Loading state tracking for record store operations."""

import logging
from contextlib import contextmanager
from typing import Iterator

from timebill.domain.errors import ConflictError, action_in_progress

logger = logging.getLogger(__name__)


class LoadingState:
    """Tracks which persistence actions are in flight.

    An action is marked on entry and cleared on every exit path. Submitting an
    action that is already in flight raises ConflictError, which keeps a double
    submit from creating duplicate entries or invoices.
    """

    def __init__(self):
        self._active: set[str] = set()

    @property
    def loading(self) -> bool:
        """True while any action is in flight."""
        return bool(self._active)

    def is_active(self, action: str) -> bool:
        return action in self._active

    @contextmanager
    def track(self, action: str) -> Iterator[None]:
        """Mark action as in flight for the duration of the block.

        Raises:
            ConflictError: If action is already in flight
        """
        if action in self._active:
            raise ConflictError(action_in_progress(action))
        self._active.add(action)
        logger.debug(f"Started {action}")
        try:
            yield
        finally:
            self._active.discard(action)
            logger.debug(f"Finished {action}")
