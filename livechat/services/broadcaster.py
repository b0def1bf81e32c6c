from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class PushEndpoint(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class BroadcastChannel:
    """Fan-out of server events to every currently connected push endpoint.

    Delivery is best-effort: no backlog for late joiners, no acknowledgement,
    and an endpoint whose send fails is dropped from the set.
    """

    def __init__(self) -> None:
        self._endpoints: dict[int, PushEndpoint] = {}

    @property
    def connection_count(self) -> int:
        return len(self._endpoints)

    def add(self, endpoint: PushEndpoint) -> None:
        self._endpoints[id(endpoint)] = endpoint
        logger.info("push_connected connections=%s", len(self._endpoints))

    def discard(self, endpoint: PushEndpoint) -> None:
        if self._endpoints.pop(id(endpoint), None) is not None:
            logger.info("push_disconnected connections=%s", len(self._endpoints))

    async def emit(self, event: str, payload: Any) -> int:
        frame = {"event": event, "data": payload}
        targets = list(self._endpoints.values())
        if not targets:
            return 0
        results = await asyncio.gather(
            *(endpoint.send_json(frame) for endpoint in targets),
            return_exceptions=True,
        )
        delivered = 0
        for endpoint, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "push_send_failed event=%s error=%s",
                    event,
                    type(result).__name__,
                )
                self._endpoints.pop(id(endpoint), None)
            else:
                delivered += 1
        logger.info("push_emit event=%s delivered=%s targets=%s", event, delivered, len(targets))
        return delivered

    async def close(self) -> None:
        targets = list(self._endpoints.values())
        self._endpoints.clear()
        for endpoint in targets:
            try:
                await endpoint.close(code=1001)
            except Exception as exc:  # noqa: BLE001
                logger.debug("push_close_failed error=%s", type(exc).__name__)
