import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunEvent:
    message: str


class RunLog:
    """
    Append-only, ordered stream of human-readable events for one run.

    Every line is also forwarded to the ``logging`` logger so the rich
    console handler picks it up. ``on_event`` lets an outside reporter
    (form log panel, progress bar, ...) follow along.
    """

    def __init__(self, on_event: Optional[Callable[[RunEvent], None]] = None):
        self._events: List[RunEvent] = []
        self.on_event = on_event

    def emit(self, message: str, level: int = logging.INFO) -> RunEvent:
        event = RunEvent(message)
        self._events.append(event)
        logger.log(level, message)
        if self.on_event:
            self.on_event(event)
        return event

    def warn(self, message: str) -> RunEvent:
        return self.emit(message, level=logging.WARNING)

    def error(self, message: str) -> RunEvent:
        return self.emit(message, level=logging.ERROR)

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self._events]

    def __iter__(self) -> Iterator[RunEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
