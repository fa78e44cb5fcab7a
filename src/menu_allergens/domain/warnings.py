from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .models import ImportWarning

SOURCE_CSV = "csv"
SOURCE_PASTE = "paste"
SOURCE_ACQUISITION = "acquisition"
SOURCE_EXTRACTION = "extraction"
SOURCE_IMPORT = "import"


class WarningLog:
    """Ordered, append-only collection of advisory warnings for one request."""

    def __init__(self, entries: Optional[Iterable[ImportWarning]] = None) -> None:
        self._entries: List[ImportWarning] = list(entries or [])

    def add(self, message: str, *, source: str = SOURCE_IMPORT, row: Optional[int] = None) -> ImportWarning:
        entry = ImportWarning(message=message, source=source, source_row=row)
        self._entries.append(entry)
        return entry

    def extend(self, entries: Iterable[ImportWarning]) -> None:
        self._entries.extend(entries)

    def extend_messages(self, messages: Iterable[str], *, source: str) -> None:
        for message in messages:
            self.add(message, source=source)

    @property
    def entries(self) -> List[ImportWarning]:
        return list(self._entries)

    def messages(self) -> List[str]:
        return [e.message for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ImportWarning]:
        return iter(list(self._entries))
