import sys
from typing import Optional, TextIO

import structlog

from ..domain.events import ReplayCompleted
from ..domain.models import SimulationContext
from .delivery_tracker import DeliveryTracker
from .dispatcher import Dispatcher
from .pacing import PacingScheduler
from .record_parser import RecordParser
from .timeline import Timeline

logger = structlog.get_logger()


class ReplayService:
    """
    Drives the timeline: parse, wait, dispatch, repeat.

    Each record moves Idle -> Waiting -> Dispatching and the loop advances
    without waiting for the HTTP response. Responses are drained once the
    last record has been sent.
    """
    def __init__(
        self,
        timeline: Timeline,
        context: SimulationContext,
        scheduler: PacingScheduler,
        dispatcher: Dispatcher,
        tracker: DeliveryTracker,
        show_progress: bool = True,
        progress_stream: Optional[TextIO] = None,
    ):
        self._timeline = timeline
        self._context = context
        self._scheduler = scheduler
        self._dispatcher = dispatcher
        self._tracker = tracker
        self._show_progress = show_progress
        self._progress_stream = progress_stream
        self._dispatched = 0

    @property
    def dispatched(self) -> int:
        return self._dispatched

    async def run(self) -> ReplayCompleted:
        logger.info(
            "simulation_started",
            race_id=self._context.race_id,
            demozone=self._context.demozone.value,
            records=len(self._timeline),
        )

        try:
            for index, entry in enumerate(self._timeline):
                event = RecordParser.parse(entry.raw, entry.line_number)

                previous = self._timeline.previous(index)
                wait = self._scheduler.compute_wait(
                    event.timestamp,
                    previous.timestamp if previous is not None else None,
                    entry.line_number,
                )

                aborted = await self._scheduler.pause(wait, self._dispatcher.failed)
                if aborted:
                    break

                self._dispatcher.dispatch(event)
                self._dispatched += 1
                self._mark_progress()

            await self._dispatcher.drain()
        except BaseException:
            await self._dispatcher.cancel()
            raise
        finally:
            self._end_progress()

        logger.info("replay_completed", dispatched=self._dispatched, delivered=self._tracker.total)
        self._tracker.log_report(logger)

        return ReplayCompleted(
            race_id=self._context.race_id,
            demozone=self._context.demozone,
            dispatched=self._dispatched,
            deliveries=tuple(self._tracker.report()),
        )

    def _stream(self) -> TextIO:
        return self._progress_stream or sys.stdout

    def _mark_progress(self) -> None:
        if self._show_progress:
            stream = self._stream()
            stream.write(".")
            stream.flush()

    def _end_progress(self) -> None:
        if self._show_progress and self._dispatched:
            self._stream().write("\n")
