import dataclasses
from enum import Enum
from typing import Any, Dict, Mapping


class EventType(str, Enum):
    """Recognised event types. Anything else is routed as an alert."""
    DATA = "data"
    ALERT = "alert"


class Demozone(str, Enum):
    """Deployment zones a simulated race can be attributed to"""
    MADRID = "MADRID"
    BARCELONA = "BARCELONA"
    LISBON = "LISBON"
    PARIS = "PARIS"
    AMSTERDAM = "AMSTERDAM"
    MILAN = "MILAN"
    BERLIN = "BERLIN"
    MUNICH = "MUNICH"


@dataclasses.dataclass(frozen=True)
class RaceEvent:
    """
    One record of the race file, decoded.
    """
    line_number: int
    timestamp: str
    event_type: str
    target_id: str
    payload: Dict[str, Any]

    @property
    def is_data(self) -> bool:
        return self.event_type == EventType.DATA.value


@dataclasses.dataclass(frozen=True)
class SimulationContext:
    """
    Race-wide values stamped onto every outbound message.
    """
    race_id: int
    demozone: Demozone

    def apply(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of payload carrying raceId and demozone."""
        enriched = dict(payload)
        enriched["raceId"] = self.race_id
        enriched["demozone"] = self.demozone.value
        return enriched


@dataclasses.dataclass(frozen=True)
class DispatchResponse:
    status: int
    headers: Mapping[str, str]
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
