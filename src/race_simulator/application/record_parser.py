import json
from datetime import date, datetime
from typing import Optional

from ..domain.errors import RecordParseError
from ..domain.models import RaceEvent


class RecordParser:
    """
    Parses one race file line into a RaceEvent.

    Line layout: timestamp;eventType;targetId;payloadJSON
    """

    DELIMITER = ";"
    FIELD_COUNT = 4

    # Race files only carry a time of day; every timestamp is pinned to the
    # same calendar day so differences are pure time-of-day deltas.
    DUMMY_DATE = date(2000, 1, 1)

    _TIME_FORMATS = (
        "%H:%M:%S",
        "%H:%M:%S.%f",
        "%H:%M",
    )

    @classmethod
    def parse(cls, raw: str, line_number: int) -> RaceEvent:
        # Only three cuts: the JSON payload may contain the delimiter itself
        fields = raw.split(cls.DELIMITER, cls.FIELD_COUNT - 1)
        if len(fields) < cls.FIELD_COUNT:
            raise RecordParseError(
                line_number,
                f"expected {cls.FIELD_COUNT} '{cls.DELIMITER}'-separated fields, got {len(fields)}"
            )

        timestamp, event_type, target_id, payload_raw = fields

        # Fail on bad timestamps here rather than in the middle of pacing
        cls.parse_time(timestamp, line_number)

        try:
            payload = json.loads(payload_raw)
        except json.JSONDecodeError as e:
            raise RecordParseError(line_number, f"payload is not valid JSON: {e.msg}") from e

        if not isinstance(payload, dict):
            raise RecordParseError(
                line_number, f"payload must be a JSON object, got {type(payload).__name__}"
            )

        return RaceEvent(
            line_number=line_number,
            timestamp=timestamp.strip(),
            event_type=event_type,
            target_id=target_id,
            payload=payload,
        )

    @classmethod
    def parse_time(cls, value: str, line_number: Optional[int] = None) -> datetime:
        """
        Anchor a time of day (HH:MM[:SS[.ffffff]]) to DUMMY_DATE.
        """
        text = value.strip()
        for fmt in cls._TIME_FORMATS:
            try:
                moment = datetime.strptime(text, fmt).time()
            except ValueError:
                continue
            return datetime.combine(cls.DUMMY_DATE, moment)

        raise RecordParseError(line_number or 0, f"unparseable timestamp {value!r}")
