"""Race simulator: replays recorded race telemetry against the IoT wrapper."""

__version__ = "1.0.0"
