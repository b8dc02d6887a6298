"""Publisher handles for encoded call graphs.

A publisher is created once at process start, passed to the components that
emit results, and closed at shutdown. Sending is fire-and-forget: the
outcome is reported through the ``on_complete`` callback, which receives
``None`` on success or the exception that prevented delivery. Nothing is
retried.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TextIO

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Exception | None], None]


class PublisherClosedError(RuntimeError):
    """Raised when sending through a publisher that has been closed."""

    pass


@dataclass(frozen=True)
class PublishedRecord:
    """A record handed to a publisher."""

    topic: str
    key: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"topic": self.topic, "key": self.key, "value": self.value}


class Publisher(ABC):
    """Destination for encoded call graphs."""

    @abstractmethod
    def send(
        self,
        topic: str,
        key: str,
        value: str,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        """Hand a record over for delivery.

        Raises:
            PublisherClosedError: If the publisher has been closed
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the publisher. Further sends fail."""
        ...

    def __enter__(self) -> Publisher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def _complete(on_complete: CompletionCallback | None, error: Exception | None) -> None:
    if on_complete is not None:
        on_complete(error)


class InMemoryPublisher(Publisher):
    """Keeps published records in memory."""

    def __init__(self) -> None:
        self.records: list[PublishedRecord] = []
        self.closed = False
        self.fail_with: Exception | None = None
        """When set, every send completes with this error instead of delivering."""

    def send(
        self,
        topic: str,
        key: str,
        value: str,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        if self.closed:
            raise PublisherClosedError("Publisher is closed")
        if self.fail_with is not None:
            _complete(on_complete, self.fail_with)
            return
        self.records.append(PublishedRecord(topic, key, value))
        _complete(on_complete, None)

    def close(self) -> None:
        self.closed = True


class JsonlFilePublisher(Publisher):
    """Appends records as JSON lines to a file."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._file: TextIO | None = None
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def _open(self) -> TextIO:
        if self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("a", encoding="utf-8")
        return self._file

    def send(
        self,
        topic: str,
        key: str,
        value: str,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        with self._lock:
            if self._closed:
                raise PublisherClosedError(f"Publisher for {self._path} is closed")
            line = json.dumps(PublishedRecord(topic, key, value).to_dict(), ensure_ascii=False)
            try:
                f = self._open()
                f.write(line + "\n")
                f.flush()
            except OSError as e:
                logger.debug("Writing to %s failed: %s", self._path, e)
                _complete(on_complete, e)
                return
        _complete(on_complete, None)

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
            self._closed = True
