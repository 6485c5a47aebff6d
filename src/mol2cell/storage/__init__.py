"""Line sources feeding the structure parsers."""

from mol2cell.storage.streaming import (
    LineSource,
    LineSplitter,
    ChunkedTextSource,
    StringLineSource,
    FileLineSource,
    AsyncChunkedTextSource,
    open_line_source,
)

__all__ = [
    "LineSource",
    "LineSplitter",
    "ChunkedTextSource",
    "StringLineSource",
    "FileLineSource",
    "AsyncChunkedTextSource",
    "open_line_source",
]
