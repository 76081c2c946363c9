from __future__ import annotations

import asyncio
import logging

from .session import SessionStore

logger = logging.getLogger(__name__)


def _retrieve(task: asyncio.Task[None]) -> None:
    # Mark the outcome as seen even if every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class RefreshCoordinator:
    """Single-flight wrapper around SessionStore.refresh_session.

    Callers arriving while a refresh is running share its outcome instead of
    starting their own; refresh tokens may be rotated on use, so two concurrent
    refreshes would invalidate each other.
    """

    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self._inflight: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def coordinate_refresh(self) -> None:
        task = self._inflight
        if task is None:
            # No await between the check and the publish: the first caller owns the cycle.
            task = asyncio.ensure_future(self._run())
            task.add_done_callback(_retrieve)
            self._inflight = task
        else:
            logger.debug("Joining refresh already in flight")
        # A cancelled waiter must not cancel the refresh the others are waiting on.
        await asyncio.shield(task)

    async def _run(self) -> None:
        try:
            await self.store.refresh_session()
        except Exception as exc:
            logger.warning("Session refresh failed, clearing session: %s", exc)
            self.store.clear_session()
            raise
        finally:
            self._inflight = None
