"""
Append-only collection of range-violation messages.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class WarningLog:
    """Growable buffer of human-readable warnings.

    Messages are only ever appended; a log is returned to the caller next to
    the numeric results it explains. Repeated identical messages are kept
    once.
    """

    def __init__(self, messages: Iterable[str] = ()) -> None:
        self._messages: list[str] = []
        self.extend(messages)

    def append(self, message: str) -> None:
        if message and message not in self._messages:
            self._messages.append(message)

    def extend(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.append(message)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __contains__(self, message: object) -> bool:
        return message in self._messages

    def text(self) -> str:
        return "\n".join(self._messages)
