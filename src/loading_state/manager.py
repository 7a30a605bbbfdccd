"""
Loading state registry with subscriber notification.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Set

from .types import GLOBAL_KEY, LoadingListener, Unsubscribe

logger = logging.getLogger("loading_state.manager")


def _check_key(key: str) -> None:
    if key == GLOBAL_KEY:
        raise ValueError(f"'{GLOBAL_KEY}' is reserved for the aggregated flag")


class LoadingManager:
    """
    Registry of named busy flags and a derived global flag.

    Flags are keyed by logical operation (for example a request key such as
    ``fetchSportClub_42``), not by subscriber. ``set_loading`` notifies the
    subscribers of that key with the new value and the subscribers of the
    reserved ``"global"`` key with the OR of all flags.

    The manager is not tied to any UI lifecycle: construct one per process
    (or per test) and inject it wherever busy state is produced or shown.

    Example:
        loading = LoadingManager()
        unsubscribe = loading.subscribe("global", lambda busy: spinner.show(busy))

        async with loading.track("fetchSportClubs"):
            await api.list(0, 10)

        unsubscribe()
    """

    def __init__(self) -> None:
        self._flags: Dict[str, bool] = {}
        self._holders: Dict[str, int] = {}
        self._listeners: Dict[str, Set[LoadingListener]] = {}

    def subscribe(self, key: str, callback: LoadingListener) -> Unsubscribe:
        """Register a callback for a key; returns the unsubscribe function."""
        self._listeners.setdefault(key, set()).add(callback)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key)
            if listeners is None:
                return
            listeners.discard(callback)
            if not listeners:
                del self._listeners[key]

        return unsubscribe

    def set_loading(self, key: str, active: bool) -> None:
        """Update the flag for a key and notify its and the global subscribers."""
        _check_key(key)

        if active:
            self._flags[key] = True
        else:
            self._flags.pop(key, None)

        logger.debug(f"LoadingManager.set_loading: key={key} active={active}")

        self._notify(key, active)
        self._notify(GLOBAL_KEY, self.get_global_loading_state())

    def is_loading(self, key: str) -> bool:
        """Current flag for a key."""
        if key == GLOBAL_KEY:
            return self.get_global_loading_state()
        return self._flags.get(key, False)

    def get_global_loading_state(self) -> bool:
        """True iff at least one flag is active."""
        return any(self._flags.values())

    def active_keys(self) -> List[str]:
        """Keys whose flag is currently active."""
        return [key for key, active in self._flags.items() if active]

    @asynccontextmanager
    async def track(self, key: str) -> AsyncIterator[None]:
        """
        Hold the flag for `key` while the block runs.

        Blocks tracking the same key overlap safely: the flag is set by the
        first one to enter and cleared by the last one to exit.
        """
        _check_key(key)
        holders = self._holders.get(key, 0)
        self._holders[key] = holders + 1
        if holders == 0:
            self.set_loading(key, True)
        try:
            yield
        finally:
            remaining = self._holders[key] - 1
            if remaining:
                self._holders[key] = remaining
            else:
                del self._holders[key]
                self.set_loading(key, False)

    def _notify(self, key: str, active: bool) -> None:
        for callback in list(self._listeners.get(key, ())):
            try:
                callback(active)
            except Exception:
                logger.exception(f"Loading listener failed for key={key}")
