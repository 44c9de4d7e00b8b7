import asyncio
from typing import Any, Dict, Optional, Set

import structlog

from ..domain.interfaces import IEventSender
from ..domain.models import RaceEvent, SimulationContext
from .delivery_tracker import DeliveryTracker

logger = structlog.get_logger()


class Dispatcher:
    """
    Routes events to the data or alert endpoint and sends them without
    holding up the replay loop.
    """
    def __init__(
        self,
        sender: IEventSender,
        context: SimulationContext,
        tracker: DeliveryTracker,
        base_url: str,
        data_path: str = "/iot/send/data/",
        alert_path: str = "/iot/send/alert/",
    ):
        self._sender = sender
        self._context = context
        self._tracker = tracker
        self._base_url = base_url.rstrip("/")
        self._data_path = "/" + data_path.strip("/") + "/"
        self._alert_path = "/" + alert_path.strip("/") + "/"
        self._active_sends: Set[asyncio.Task] = set()
        self._error: Optional[Exception] = None
        self.failed = asyncio.Event()

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def in_flight(self) -> int:
        return len(self._active_sends)

    def resolve_url(self, event: RaceEvent) -> str:
        path = self._data_path if event.is_data else self._alert_path
        return f"{self._base_url}{path}{event.target_id}"

    def build_payload(self, event: RaceEvent) -> Dict[str, Any]:
        return self._context.apply(event.payload)

    def dispatch(self, event: RaceEvent) -> asyncio.Task:
        """
        Schedule exactly one POST for event and return immediately.
        """
        self._tracker.register(event.target_id)

        url = self.resolve_url(event)
        payload = self.build_payload(event)
        logger.debug(
            "event_dispatching",
            line=event.line_number,
            event_type=event.event_type,
            target=event.target_id,
            payload=payload,
        )

        task = asyncio.create_task(self._send(event, url, payload))
        self._active_sends.add(task)
        task.add_done_callback(self._on_send_done)
        return task

    async def _send(self, event: RaceEvent, url: str, payload: Dict[str, Any]) -> None:
        response = await self._sender.post(url, payload)

        if response.ok:
            logger.debug("dispatch_response", line=event.line_number, status=response.status,
                         headers=dict(response.headers), body=response.body)
        else:
            # Remote-side failures are reported but the message still counts as delivered
            logger.warning("dispatch_rejected", line=event.line_number, target=event.target_id,
                           status=response.status, body=response.body)

        self._tracker.record_delivery(event.target_id)

    def _on_send_done(self, task: asyncio.Task) -> None:
        self._active_sends.discard(task)
        if task.cancelled():
            return

        exc = task.exception()
        if exc is None:
            return
        if self._error is None:
            self._error = exc
            self.failed.set()

    async def drain(self) -> None:
        """
        Wait for every in-flight send. Raises the first transport failure.
        """
        while self._active_sends and self._error is None:
            await asyncio.wait(set(self._active_sends), return_when=asyncio.FIRST_EXCEPTION)

        if self._error is not None:
            await self.cancel()
            raise self._error

    async def cancel(self) -> None:
        pending = list(self._active_sends)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
