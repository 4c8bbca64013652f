"""Connectivity monitor shared by the archive store and its callers.

One instance is created at startup (API lifespan, CLI entry point) and
passed to whoever needs it. Listeners are told when the online state
flips; the store flips it from its retry callbacks.
"""

import logging
from typing import Callable

import httpx

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectionMonitor:
    """Observable online/offline state for the GitHub API."""

    def __init__(self, probe_url: str, timeout: float = 5.0):
        """Initialize the monitor.

        Args:
            probe_url: URL requested by check(); any HTTP answer means online
            timeout: Probe timeout in seconds
        """
        self.probe_url = probe_url
        self.timeout = timeout
        self._online = True
        self._initialized = False
        self._listeners: set[Listener] = set()

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def init(self) -> bool:
        """Probe once and mark the monitor ready.

        Returns:
            Online state after the probe
        """
        online = await self.check()
        self._initialized = True
        return online

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.add(callback)
        return lambda: self._listeners.discard(callback)

    def set_online(self, online: bool) -> None:
        """Record the online state, notifying listeners only when it changes."""
        if online == self._online:
            return
        self._online = online
        logger.info(f"Connection to GitHub is now {'online' if online else 'offline'}")
        for callback in list(self._listeners):
            callback(online)

    async def check(self) -> bool:
        """Probe the API and update the online state.

        Returns:
            True if the probe got any HTTP response
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                await client.head(self.probe_url)
            online = True
        except httpx.TransportError as e:
            logger.debug(f"Connectivity probe failed: {e}")
            online = False

        self.set_online(online)
        return online
