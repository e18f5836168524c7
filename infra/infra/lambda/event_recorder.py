import logging
from typing import Protocol


class Recorder(Protocol):
    def record(self, level: int, message: str) -> None:
        ...


class LoggingRecorder:
    """Forwards records to a standard logging.Logger."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def record(self, level: int, message: str) -> None:
        self.logger.log(level, message)


class MemoryRecorder:
    """Keeps (level, message) tuples in memory. Handy in tests and local runs."""

    def __init__(self):
        self.records: list[tuple[int, str]] = []

    def record(self, level: int, message: str) -> None:
        self.records.append((level, message))

    def messages(self, level: int | None = None) -> list[str]:
        return [m for lvl, m in self.records if level is None or lvl == level]
