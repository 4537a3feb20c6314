"""Parsed representation of one manager protocol block."""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .utils import (
    HEADER_ACTION_ID,
    HEADER_EVENT,
    HEADER_EVENT_LIST,
    HEADER_RESPONSE,
    RESPONSE_SUCCESS,
)


class BlockType(Enum):
    """Classification of a block by the header name on its first line."""

    RESPONSE = "response"
    EVENT = "event"
    UNKNOWN = "unknown"
    EMPTY = "empty"

    @classmethod
    def from_first_line(cls, line: str) -> "BlockType":
        """Classify using the first raw line of a block."""
        name = line.split(":", 1)[0].strip().lower()
        if not name:
            return cls.EMPTY
        if name == "response":
            return cls.RESPONSE
        if name == "event":
            return cls.EVENT
        return cls.UNKNOWN


class Message(Mapping):
    """
    Ordered multimap of header name to value.

    Headers may repeat; ``pairs`` keeps every line in arrival order while
    scalar lookups compare names case-insensitively and return the last
    value seen. Instances are immutable. Event-list aggregation attaches the
    collected records through :meth:`with_events`, which returns a copy.
    """

    __slots__ = ("_pairs", "_index", "_block_type", "_events")

    def __init__(
        self,
        pairs: Iterable[Tuple[str, str]] = (),
        block_type: Optional[BlockType] = None,
        events: Optional[Sequence["Message"]] = None,
    ) -> None:
        self._pairs: Tuple[Tuple[str, str], ...] = tuple(
            (str(name), str(value)) for name, value in pairs
        )
        # lower-cased name -> (first-seen name, last value)
        index: Dict[str, Tuple[str, str]] = {}
        for name, value in self._pairs:
            key = name.lower()
            first = index[key][0] if key in index else name
            index[key] = (first, value)
        self._index = index
        if block_type is None:
            block_type = (
                BlockType.from_first_line(self._pairs[0][0])
                if self._pairs
                else BlockType.EMPTY
            )
        self._block_type = block_type
        self._events: Optional[Tuple["Message", ...]] = (
            tuple(events) if events is not None else None
        )

    # Mapping protocol

    def __getitem__(self, name: str) -> str:
        try:
            return self._index[name.lower()][1]
        except KeyError:
            raise KeyError(name) from None

    def __iter__(self) -> Iterator[str]:
        return (first for first, _ in self._index.values())

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._pairs == other._pairs and self._events == other._events

    def __hash__(self) -> int:
        return hash((self._pairs, self._events))

    def __repr__(self) -> str:
        extra = f", events={len(self._events)}" if self._events is not None else ""
        return f"Message({list(self._pairs)!r}, block_type={self._block_type.value}{extra})"

    # Multimap access

    @property
    def pairs(self) -> Tuple[Tuple[str, str], ...]:
        """Every header line in arrival order, duplicates included."""
        return self._pairs

    def get_all(self, name: str) -> List[str]:
        """Return every value recorded for ``name`` in arrival order."""
        key = name.lower()
        return [value for header, value in self._pairs if header.lower() == key]

    # Classification and well-known headers

    @property
    def block_type(self) -> BlockType:
        return self._block_type

    @property
    def events(self) -> Optional[Tuple["Message", ...]]:
        """Records collected by list aggregation, ``None`` for plain messages."""
        return self._events

    @property
    def response(self) -> Optional[str]:
        return self.get(HEADER_RESPONSE)

    @property
    def event(self) -> Optional[str]:
        return self.get(HEADER_EVENT)

    @property
    def action_id(self) -> Optional[str]:
        return self.get(HEADER_ACTION_ID)

    @property
    def event_list(self) -> Optional[str]:
        return self.get(HEADER_EVENT_LIST)

    @property
    def is_success(self) -> bool:
        return self.response == RESPONSE_SUCCESS

    def is_empty(self) -> bool:
        return not self._pairs

    def with_events(self, events: Sequence["Message"]) -> "Message":
        """Return a copy of this message carrying the aggregated ``events``."""
        return Message(self._pairs, block_type=self._block_type, events=events)

    def to_dict(self) -> Dict[str, Any]:
        """Last-wins dict of headers, plus an ``events`` list when aggregated."""
        data: Dict[str, Any] = {name: self[name] for name in self}
        if self._events is not None:
            data["events"] = [event.to_dict() for event in self._events]
        return data
