"""Connectivity probes.

A probe exposes a synchronously readable online flag and notifies subscribers
on the offline -> online edge.
"""

import asyncio
import logging
from typing import Callable, Optional

import httpx

from formsync.clock import AsyncioClock, Clock

logger = logging.getLogger(__name__)

OnlineListener = Callable[[], None]


class ConnectivityProbe:
    """Base probe: holds the current state and fans out "became online" events."""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: list[OnlineListener] = []

    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: OnlineListener) -> Callable[[], None]:
        """Register a "became online" listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, online: bool) -> None:
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("Connectivity restored")
            for listener in list(self._listeners):
                try:
                    listener()
                except Exception:
                    logger.exception("Online listener failed")
        elif was_online and not online:
            logger.warning("Connectivity lost")

    async def start(self) -> None:
        """Start background checks, if the probe has any."""

    async def stop(self) -> None:
        """Stop background checks."""


class ManualConnectivity(ConnectivityProbe):
    """Probe whose state is set by the host application (or a test)."""

    def set_online(self, online: bool) -> None:
        self._set_state(online)


class HttpConnectivityProbe(ConnectivityProbe):
    """Probe that periodically requests a health URL.

    Any HTTP response means the backend is reachable; a network error or
    timeout marks the probe offline.
    """

    def __init__(
        self,
        url: str,
        interval_seconds: float = 5.0,
        timeout_seconds: float = 5.0,
        clock: Optional[Clock] = None,
        client: Optional[httpx.AsyncClient] = None,
        online: bool = True,
    ):
        super().__init__(online=online)
        self.url = url
        self.interval_seconds = interval_seconds
        self._clock = clock or AsyncioClock()
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None
        self._task: Optional[asyncio.Task] = None

    async def check(self) -> bool:
        """Run one check and update the state. Returns the new state."""
        try:
            response = await self._client.get(self.url)
            logger.debug(f"Connectivity check {self.url} -> {response.status_code}")
            self._set_state(True)
        except httpx.HTTPError as e:
            logger.debug(f"Connectivity check failed: {e}")
            self._set_state(False)
        return self._online

    async def _safe_check(self) -> None:
        try:
            await self.check()
        except Exception:
            # Keep the last known state; the next interval tries again
            logger.exception(f"Connectivity check {self.url} raised unexpectedly")

    async def _run(self) -> None:
        while True:
            await self._clock.sleep(self.interval_seconds * 1000)
            await self._safe_check()

    async def start(self) -> None:
        if self._task is None:
            await self._safe_check()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        if self._owns_client:
            await self._client.aclose()
