import asyncio
from typing import Optional

from .record_parser import RecordParser


class PacingScheduler:
    """
    Reproduces the recorded gaps between consecutive events.
    """
    def __init__(self, speed: float = 1.0):
        if speed <= 0:
            raise ValueError("speed must be positive")
        self._speed = speed

    def compute_wait(self, current: str, previous: Optional[str], line_number: Optional[int] = None) -> float:
        """
        Seconds to wait before dispatching current.

        Zero for the first record. Out-of-order timestamps clamp to zero
        instead of producing a negative delay.
        """
        if previous is None:
            return 0.0

        delta = (
            RecordParser.parse_time(current, line_number)
            - RecordParser.parse_time(previous, line_number)
        ).total_seconds()
        return max(0.0, delta) / self._speed

    async def pause(self, seconds: float, abort: asyncio.Event) -> bool:
        """
        Suspend the replay loop for seconds.
        Returns True if abort fired before the delay elapsed.
        """
        if abort.is_set():
            return True
        if seconds <= 0:
            return False

        try:
            await asyncio.wait_for(abort.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
