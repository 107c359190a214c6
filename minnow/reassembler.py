"""Reassembly of indexed, possibly overlapping substrings into a byte stream."""

from __future__ import annotations

from dataclasses import dataclass

from minnow.byte_stream import Writer


@dataclass
class _Segment:
    data: bytes
    end: bool


class Reassembler:
    """Puts out-of-order substrings back together and writes them in order."""

    def __init__(self) -> None:
        self._next_index = 0
        self._pending: dict[int, _Segment] = {}

    def insert(self, first_index: int, data: bytes, is_last_substring: bool, output: Writer) -> None:
        """Insert a substring starting at ``first_index`` and write what is ready."""
        if first_index < 0:
            raise ValueError("first_index must not be negative")
        data = bytes(data)
        target = self._next_index
        window_end = target + output.available_capacity()
        end = first_index + len(data)
        if end < target or first_index > window_end:
            return

        excess = end - window_end
        if excess > 0:
            data = data[: len(data) - excess]

        lead = target - first_index
        if lead > 0:
            data = data[lead:]
            first_index = target

        existing = self._pending.get(first_index)
        if existing is not None and len(existing.data) > len(data):
            return

        self._pending[first_index] = _Segment(data, bool(is_last_substring))
        self._coalesce()

        first = min(self._pending)
        if first == target:
            segment = self._pending.pop(first)
            output.push(segment.data)
            self._next_index += len(segment.data)
            if segment.end:
                output.close()

    def _coalesce(self) -> None:
        merged: dict[int, _Segment] = {}
        previous: tuple[int, _Segment] | None = None
        for index in sorted(self._pending):
            segment = self._pending[index]
            if previous is not None:
                prev_index, prev_segment = previous
                overlap = prev_index + len(prev_segment.data) - index
                if overlap >= 0:
                    if overlap <= len(segment.data):
                        prev_segment.data += segment.data[overlap:]
                        prev_segment.end = prev_segment.end or segment.end
                    continue
            merged[index] = segment
            previous = (index, segment)
        self._pending = merged

    def bytes_pending(self) -> int:
        """How many bytes are held inside the reassembler."""
        return sum(len(segment.data) for segment in self._pending.values())