import dataclasses
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from ..domain.errors import RaceFileError


@dataclasses.dataclass(frozen=True)
class TimelineEntry:
    line_number: int
    raw: str

    @property
    def timestamp(self) -> str:
        """First field of the raw line, without decoding the rest."""
        return self.raw.split(";", 1)[0]


class Timeline:
    """
    Ordered, immutable sequence of race file records.

    Blank lines (including the one left by a final newline) are skipped;
    every entry keeps its physical 1-based line number.
    """

    def __init__(self, entries: Tuple[TimelineEntry, ...], source: str = "<memory>", raw_line_count: int = 0):
        self._entries = entries
        self._source = source
        self._raw_line_count = raw_line_count or len(entries)

    @classmethod
    def from_text(cls, text: str, source: str = "<memory>") -> "Timeline":
        lines = text.split("\n")
        entries = tuple(
            TimelineEntry(line_number=number, raw=line.rstrip("\r"))
            for number, line in enumerate(lines, start=1)
            if line.strip()
        )
        return cls(entries, source=source, raw_line_count=len(lines))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Timeline":
        path = Path(path)
        if not path.is_file():
            raise RaceFileError(str(path), "file does not exist")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise RaceFileError(str(path), f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise RaceFileError(str(path), e.strerror or str(e)) from e
        return cls.from_text(text, source=str(path))

    @property
    def source(self) -> str:
        return self._source

    @property
    def raw_line_count(self) -> int:
        return self._raw_line_count

    def previous(self, index: int) -> Optional[TimelineEntry]:
        """Predecessor of entry index, None for the first record."""
        if index <= 0:
            return None
        return self._entries[index - 1]

    def __getitem__(self, index: int) -> TimelineEntry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TimelineEntry]:
        return iter(self._entries)
