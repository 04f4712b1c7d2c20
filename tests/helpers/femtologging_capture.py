"""Capture femtologging output from workspace-sync loggers in tests."""

from __future__ import annotations

import contextlib
import dataclasses
import threading
import time
import typing as typ

from femtologging import get_logger


@dataclasses.dataclass(slots=True)
class CapturedRecord:
    """One log record delivered by the femtologging worker."""

    logger: str
    level: str
    message: str


class FemtoLogCapture:
    """Handler collecting records and letting assertions wait for them."""

    def __init__(self) -> None:
        """Initialise empty storage."""
        self.records: list[CapturedRecord] = []
        self._condition = threading.Condition()

    def handle(self, logger: str, level: str, message: str) -> None:
        """Store a record sent from the femtologging worker thread."""
        with self._condition:
            self.records.append(
                CapturedRecord(logger=str(logger), level=str(level), message=message)
            )
            self._condition.notify_all()

    def handle_record(self, record: dict[str, object]) -> None:
        """Store a structured record, as sent when ``exc_info`` is attached."""
        self.handle(
            str(record.get("logger", "")),
            str(record.get("level", "")),
            str(record.get("message", "")),
        )

    def wait_for(
        self, predicate: typ.Callable[[CapturedRecord], bool], timeout: float = 1.0
    ) -> list[CapturedRecord]:
        """Wait until a record satisfies ``predicate`` and return all matches."""
        deadline = time.monotonic() + timeout
        with self._condition:
            while not any(predicate(record) for record in self.records):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._condition.wait(timeout=remaining)
            return [record for record in self.records if predicate(record)]

    def wait_for_message(self, fragment: str, timeout: float = 1.0) -> CapturedRecord:
        """Return the first record containing ``fragment``, failing if none."""
        matches = self.wait_for(lambda record: fragment in record.message, timeout)
        assert matches, f"no log record containing {fragment!r}: {self.records!r}"
        return matches[0]


@contextlib.contextmanager
def capture_femto_logs(
    logger_name: str, *, level: str = "TRACE"
) -> typ.Iterator[FemtoLogCapture]:
    """Attach a capturing handler to the named logger for the block."""
    logger = get_logger(logger_name)
    previous_level = logger.level
    previous_propagate = logger.propagate
    logger.set_level(level)
    logger.set_propagate(False)
    handler = FemtoLogCapture()
    logger.add_handler(handler)
    try:
        yield handler
    finally:
        logger.remove_handler(handler)
        logger.set_level(previous_level)
        logger.set_propagate(previous_propagate)
