import dataclasses
from typing import Tuple

from .models import Demozone


@dataclasses.dataclass(frozen=True)
class ReplayCompleted:
    """
    Emitted once the whole timeline has been dispatched and every response drained.
    """
    race_id: int
    demozone: Demozone
    dispatched: int
    deliveries: Tuple[Tuple[str, int], ...]
