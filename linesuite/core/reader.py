"""Line-oriented reader for test data streams.

Grammar, applied after left-trimming each line:
  //...        comment, ignored
  :name        block marker; the rest of the line (trimmed) is the test name
  (empty)      blank, ignored
  anything     a test case for the last named block

LineReader hands out raw lines and counts them. BlockReader layers the
grammar on top and keeps a single line of lookahead, so that reading the
cases of one block stops at the next marker without losing it.
"""

from __future__ import annotations

import logging
from typing import IO

from linesuite.core.errors import StreamError
from linesuite.core.types import Line, LineKind

logger = logging.getLogger(__name__)

COMMENT_MARKER = '//'
NAME_MARKER = ':'


def classify_line(raw: str) -> Line:
    """Classify one raw line (terminator already stripped)."""
    data = raw.lstrip()
    if data.startswith(COMMENT_MARKER):
        return Line(LineKind.COMMENT, raw)
    if data.startswith(NAME_MARKER):
        return Line(LineKind.NAME, data[len(NAME_MARKER) :].strip())
    if not data:
        return Line(LineKind.BLANK, raw)
    return Line(LineKind.DATA, data.rstrip())


class LineReader:
    """Successive lines from a text or binary stream, with a 1-based counter.

    Bytes are decoded one line at a time with replacement: an undecodable
    byte spoils only the line it is on. A text file is read through its byte
    buffer and decoded the same way, with the file's encoding.
    """

    def __init__(self, stream: IO):
        buffer = getattr(stream, 'buffer', None)
        if buffer is not None:
            self._stream = buffer
            self._encoding = getattr(stream, 'encoding', None) or 'utf-8'
        else:
            self._stream = stream
            self._encoding = 'utf-8'
        self._line_counter = 0

    @property
    def line_counter(self) -> int:
        """Index of the last line returned (0 before the first read)."""
        return self._line_counter

    def read_line(self) -> str | None:
        """Return the next line without its terminator, or None at end of stream.

        A read error counts as end of stream; a partial line is never returned.
        """
        try:
            line = self._stream.readline()
        except (OSError, ValueError) as exc:
            logger.warning('read failed after line %d, treating as end of data: %s', self._line_counter, exc)
            return None
        if not line:
            return None
        if isinstance(line, bytes):
            line = line.decode(self._encoding, errors='replace')
        if line.endswith('\n'):
            line = line[:-1]
            if line.endswith('\r'):
                line = line[:-1]
        self._line_counter += 1
        return line

    def reset(self) -> None:
        """Rewind to the start of the stream and zero the counter."""
        try:
            self._stream.seek(0)
        except (OSError, ValueError) as exc:
            if self._line_counter:
                raise StreamError(f'Cannot rewind test data stream: {exc}') from exc
            # never read from: already at the start
        self._line_counter = 0


class BlockReader:
    """Reads test names and test cases from a LineReader."""

    def __init__(self, lines: LineReader):
        self._lines = lines
        self._lookahead: str | None = None  # a name marker line seen by read_test_case()
        self._raw = PayloadLines(self)

    @property
    def line_counter(self) -> int:
        return self._lines.line_counter

    @property
    def raw(self) -> PayloadLines:
        """The raw-line view handed to test methods for extra payload lines."""
        return self._raw

    def reset(self) -> None:
        self._lookahead = None
        self._lines.reset()

    def _next_line(self) -> str | None:
        if self._lookahead is not None:
            line, self._lookahead = self._lookahead, None
            return line
        return self._lines.read_line()

    def read_test_name(self) -> str | None:
        """Skip forward to the next block marker and return its name."""
        raw = self._next_line()
        while raw is not None:
            line = classify_line(raw)
            if line.kind is LineKind.NAME:
                return line.text
            if line.kind is LineKind.DATA:
                logger.debug('line %d: skipping data outside a block: %r', self.line_counter, line.text)
            raw = self._lines.read_line()
        return None

    def read_test_case(self) -> str | None:
        """Return the next case of the current block, or None at the block's end.

        A block marker ends the block; it stays buffered for read_test_name().
        """
        if self._lookahead is not None:
            return None
        raw = self._lines.read_line()
        while raw is not None:
            line = classify_line(raw)
            if line.kind is LineKind.NAME:
                self._lookahead = raw
                return None
            if line.kind is LineKind.DATA:
                return line.text
            raw = self._lines.read_line()
        return None

    def read_raw_line(self) -> str | None:
        """Return the next unclassified line of the current block.

        Stops at a block marker, which is buffered exactly as read_test_case() does.
        """
        if self._lookahead is not None:
            return None
        raw = self._lines.read_line()
        if raw is not None and classify_line(raw).kind is LineKind.NAME:
            logger.warning('line %d: test method tried to read past its block into %r', self.line_counter, raw)
            self._lookahead = raw
            return None
        return raw


class PayloadLines:
    """Raw lines for a test method that needs more input than its case line.

    Lines are returned unclassified (comments and blanks included), but a
    block marker is never handed out: it is left for the block reader and
    None is returned, as at end of stream.
    """

    def __init__(self, blocks: BlockReader):
        self._blocks = blocks

    @property
    def line_counter(self) -> int:
        return self._blocks.line_counter

    def read_line(self) -> str | None:
        return self._blocks.read_raw_line()
