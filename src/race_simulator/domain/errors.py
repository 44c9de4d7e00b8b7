class SimulatorError(Exception):
    """Base class for every error the simulator reports to the user."""


class RaceFileError(SimulatorError):
    """
    The race file is missing, unreadable or not UTF-8.
    Raised before any event is dispatched.
    """
    def __init__(self, path: str, reason: str):
        super().__init__(f"Race file {path} cannot be used: {reason}")
        self.path = path
        self.reason = reason


class RecordParseError(SimulatorError):
    """A race file line could not be decoded into an event."""
    def __init__(self, line_number: int, reason: str):
        super().__init__(f"Line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


class TransportError(SimulatorError):
    """
    The POST never produced a response (refused, timed out, broken).
    Fatal for the whole run.
    """
    def __init__(self, url: str, reason: str):
        super().__init__(f"POST {url} failed: {reason}")
        self.url = url
        self.reason = reason
