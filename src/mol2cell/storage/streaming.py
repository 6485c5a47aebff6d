"""Chunked line sources for the structure parsers.

A line source delivers the lines of a document in order, as one or more
chunks, and reports the raw size of the input (used only to estimate the
initial atom-store capacity). Chunk boundaries carry no meaning: text
chunks are re-split so that every delivered line is complete.

Sources:
- StringLineSource: in-memory text
- FileLineSource: local files, gzip-compressed when the suffix is .gz
- ChunkedTextSource: any iterable of text chunks
- AsyncChunkedTextSource: any async iterable of text chunks
"""

from __future__ import annotations

import codecs
import gzip
import logging
from pathlib import Path
from typing import (
    AsyncIterable,
    AsyncIterator,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Union,
)


logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB of text per chunk


class LineSource(Protocol):
    """Pull-based line delivery contract."""

    byte_length: int

    def chunks(self) -> Iterator[List[str]]:
        """Yield lists of complete lines until the input is exhausted."""
        ...


class LineSplitter:
    """Re-splits arbitrary text chunks into complete lines.

    The trailing partial line of each chunk is held back and prefixed to
    the next one.
    """

    def __init__(self):
        self._partial = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, text: Union[str, bytes]) -> List[str]:
        """Add a chunk and return the lines it completes."""
        if isinstance(text, bytes):
            text = self._decoder.decode(text)
        lines = (self._partial + text).split("\n")
        self._partial = lines.pop()
        return lines

    def flush(self) -> List[str]:
        """Return the held-back last line, if any."""
        partial = self._partial + self._decoder.decode(b"", final=True)
        self._partial = ""
        return [partial] if partial else []


class ChunkedTextSource:
    """Line source over an iterable of text chunks.

    Example usage:
        >>> source = ChunkedTextSource(["@<TRIPOS>MOL", "ECULE\\nname\\n"])
        >>> [line for chunk in source.chunks() for line in chunk]
        ['@<TRIPOS>MOLECULE', 'name']
    """

    def __init__(self, text_chunks: Iterable[Union[str, bytes]], byte_length: int = 0):
        self._text_chunks = text_chunks
        self.byte_length = byte_length

    def chunks(self) -> Iterator[List[str]]:
        splitter = LineSplitter()
        for text in self._text_chunks:
            lines = splitter.feed(text)
            if lines:
                yield lines
        tail = splitter.flush()
        if tail:
            yield tail


class StringLineSource(ChunkedTextSource):
    """Line source over an in-memory string."""

    def __init__(self, text: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.text = text
        self.chunk_size = max(int(chunk_size), 1)
        super().__init__(self._slices(), byte_length=len(text))

    def _slices(self) -> Iterator[str]:
        for start in range(0, len(self.text), self.chunk_size):
            yield self.text[start:start + self.chunk_size]

    def as_text(self) -> str:
        """The whole input as one string."""
        return self.text


class FileLineSource:
    """Line source over a local file, transparently decompressing .gz files."""

    def __init__(self, path: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = Path(path)
        self.chunk_size = max(int(chunk_size), 1)
        self.byte_length = self.path.stat().st_size

    def _open(self):
        if self.path.suffix == ".gz":
            return gzip.open(self.path, "rt", encoding="utf-8")
        return open(self.path, encoding="utf-8")

    def chunks(self) -> Iterator[List[str]]:
        logger.debug(f"Streaming {self.path} in chunks of {self.chunk_size}")
        splitter = LineSplitter()
        with self._open() as f:
            while True:
                text = f.read(self.chunk_size)
                if not text:
                    break
                lines = splitter.feed(text)
                if lines:
                    yield lines
        tail = splitter.flush()
        if tail:
            yield tail

    def as_text(self) -> str:
        """The whole file as one string."""
        with self._open() as f:
            return f.read()


class AsyncChunkedTextSource:
    """Line source over an async iterable of text chunks.

    Each chunk is handed over only after the consumer has finished with
    the previous one.
    """

    def __init__(
        self,
        text_chunks: AsyncIterable[Union[str, bytes]],
        byte_length: int = 0,
    ):
        self._text_chunks = text_chunks
        self.byte_length = byte_length

    async def chunks(self) -> AsyncIterator[List[str]]:
        splitter = LineSplitter()
        async for text in self._text_chunks:
            lines = splitter.feed(text)
            if lines:
                yield lines
        tail = splitter.flush()
        if tail:
            yield tail


def open_line_source(
    source: Union[str, Path, LineSource],
    chunk_size: Optional[int] = None,
) -> LineSource:
    """Turn a path or an existing line source into a line source."""
    if isinstance(source, (str, Path)):
        return FileLineSource(source, chunk_size or DEFAULT_CHUNK_SIZE)
    return source
