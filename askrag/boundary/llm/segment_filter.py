"""
Delimited segment filters for streamed tokens.

Removes [OPEN]...[CLOSE] segments from a token stream even when a tag is
split across tokens. Used for [THINK] reasoning blocks emitted by some local
models and for tool-request markers that must not reach the reader.

Dependencies: None
System role: Token post-processing for streamed answers
"""

THINK_OPEN = "[THINK]"
THINK_CLOSE = "[/THINK]"


def _partial_tag_suffix(text: str, tag: str) -> int:
    """Length of the longest suffix of text that is a proper prefix of tag."""
    for size in range(min(len(tag) - 1, len(text)), 0, -1):
        if text.endswith(tag[:size]):
            return size
    return 0


class SegmentFilter:
    """
    Stateful filter; feed tokens in order, then flush once.

    Attributes:
        keep_unclosed: On flush, release a segment that was opened but
            never closed instead of dropping it
    """

    def __init__(self, open_tag: str, close_tag: str, keep_unclosed: bool = False) -> None:
        self.open_tag = open_tag
        self.close_tag = close_tag
        self.keep_unclosed = keep_unclosed
        self._buffer = ""
        self._held = ""
        self._inside = False

    def feed(self, token: str) -> str:
        self._buffer += token
        out: list[str] = []
        while True:
            tag = self.close_tag if self._inside else self.open_tag
            idx = self._buffer.find(tag)
            if idx >= 0:
                if self._inside:
                    self._held = ""
                else:
                    out.append(self._buffer[:idx])
                self._buffer = self._buffer[idx + len(tag):]
                self._inside = not self._inside
                continue
            keep = _partial_tag_suffix(self._buffer, tag)
            ready = self._buffer[: len(self._buffer) - keep]
            self._buffer = self._buffer[len(self._buffer) - keep:]
            if self._inside:
                self._held += ready
            else:
                out.append(ready)
            return "".join(out)

    def flush(self) -> str:
        if not self._inside:
            rest = self._buffer
        elif self.keep_unclosed:
            rest = self.open_tag + self._held + self._buffer
        else:
            rest = ""
        self._buffer, self._held, self._inside = "", "", False
        return rest


class ThinkFilter(SegmentFilter):
    """Drops [THINK]...[/THINK] reasoning, including an unterminated block."""

    def __init__(self) -> None:
        super().__init__(THINK_OPEN, THINK_CLOSE)


def strip_think(text: str) -> str:
    """Remove reasoning segments from a complete text."""
    think = ThinkFilter()
    return think.feed(text) + think.flush()
