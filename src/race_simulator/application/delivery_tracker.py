from typing import Any, Dict, List, Tuple


class DeliveryTracker:
    """
    Per-target message counters, kept in first-seen order.

    Only touched from the event loop thread and never across an await,
    so overlapping responses cannot lose increments.
    """
    def __init__(self):
        self._counts: Dict[str, int] = {}

    def register(self, target_id: str) -> None:
        self._counts.setdefault(target_id, 0)

    def record_delivery(self, target_id: str) -> int:
        self._counts[target_id] = self._counts.get(target_id, 0) + 1
        return self._counts[target_id]

    def count(self, target_id: str) -> int:
        return self._counts.get(target_id, 0)

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def report(self) -> List[Tuple[str, int]]:
        return list(self._counts.items())

    def log_report(self, logger: Any) -> None:
        for target_id, messages in self._counts.items():
            logger.info("delivery_count", target=target_id, messages=messages, line=f"{target_id}: {messages}")
