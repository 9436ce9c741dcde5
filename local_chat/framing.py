"""Newline framing for chunked NDJSON streams."""

import codecs
from typing import Iterator


class LineFramer:
    """
    Reassembles text lines from arbitrarily split byte chunks.

    Bytes are decoded with an incremental UTF-8 decoder, so a multi-byte
    character split across two chunks is held back until complete. One
    pending buffer carries the partial line between feed() calls.
    Whitespace-only lines are dropped.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Partial line waiting for its newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> Iterator[str]:
        """Buffer a chunk now; iterate the result for the lines it completes."""
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def flush(self) -> Iterator[str]:
        """Return whatever is left at end of stream, the tail as a final line."""
        self._buffer += self._decoder.decode(b"", final=True)
        lines = list(self._drain())

        tail, self._buffer = self._buffer, ""
        if tail.strip():
            lines.append(tail)
        return iter(lines)

    def _drain(self) -> Iterator[str]:
        while True:
            index = self._buffer.find("\n")
            if index < 0:
                return
            line = self._buffer[:index]
            # Trim before yielding so an abandoned iterator leaves no duplicates
            self._buffer = self._buffer[index + 1:]
            if line.strip():
                yield line
