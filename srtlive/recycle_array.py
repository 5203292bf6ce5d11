"""A fixed-size ring buffer that many readers follow independently."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .common import gettime_ms

logger = logging.getLogger(__name__)

DEFAULT_MAX_DATA_SIZE = 1024 * 1316  # about 5 Mbps for 2 seconds


@dataclass
class ReadCursor:
    """One reader's position in a RecycleArray."""

    read_pos: int = 0
    data_count: int = 0
    first: bool = True


class RecycleArray:
    """Ring buffer: writers overwrite old data; each reader keeps a cursor.

    Readers that fall a whole buffer behind are not detected; they simply
    read whatever is in the buffer now.
    """

    def __init__(
        self,
        size: int = DEFAULT_MAX_DATA_SIZE,
        clock: Callable[[], int] = gettime_ms,
    ) -> None:
        if size <= 0:
            raise ValueError("size must be positive")
        self._clock = clock
        self._lock = threading.Lock()
        self._size = size
        self._buffer = bytearray(size)
        self._write_pos = 0
        self._data_count = 0
        self.last_read_time = clock()

    @property
    def size(self) -> int:
        return self._size

    def count(self) -> int:
        """Total number of bytes ever written."""
        with self._lock:
            return self._data_count

    def set_size(self, n: int) -> None:
        """Replace the buffer with an empty one of n bytes; call before use."""
        if n <= 0:
            raise ValueError("size must be positive")
        with self._lock:
            self._size = n
            self._write_pos = 0
            self._buffer = bytearray(n)

    def put(self, data: bytes) -> int:
        """Append data, overwriting the oldest bytes; return its length."""
        length = len(data)
        if length == 0:
            raise ValueError("put: no data")
        with self._lock:
            if length > self._size:
                raise ValueError(
                    f"put: len={length} is bigger than the buffer size={self._size}"
                )
            pos = self._write_pos
            room = self._size - pos
            if room >= length:
                self._buffer[pos:pos + length] = data
                self._write_pos = pos + length
            else:
                self._buffer[pos:] = data[:room]
                self._buffer[:length - room] = data[room:]
                self._write_pos = length - room
            if self._write_pos == self._size:
                self._write_pos = 0
            self._data_count += length
            logger.debug(
                "put, len=%d, write_pos=%d, data_count=%d, size=%d.",
                length, self._write_pos, self._data_count, self._size,
            )
        return length

    def get(self, cursor: ReadCursor, size: int, aligned: int = 0) -> bytes:
        """Read up to size new bytes for cursor, a multiple of aligned if > 0.

        The first read only places the cursor at the current write position.
        """
        with self._lock:
            if cursor.first:
                cursor.read_pos = self._write_pos
                cursor.data_count = self._data_count
                cursor.first = False
                return b""
            if cursor.read_pos == self._write_pos and cursor.data_count == self._data_count:
                return b""

            self.last_read_time = self._clock()
            read_pos = cursor.read_pos
            if read_pos < self._write_pos:
                ready = self._write_pos - read_pos
            else:
                ready = self._size - read_pos + self._write_pos
            length = min(ready, size)
            if aligned > 0:
                length = length // aligned * aligned

            chunk = b""
            if length > 0:
                tail = self._size - read_pos
                if tail >= length:
                    chunk = bytes(self._buffer[read_pos:read_pos + length])
                    read_pos += length
                else:
                    chunk = bytes(self._buffer[read_pos:]) + bytes(
                        self._buffer[:length - tail]
                    )
                    read_pos = length - tail

            if read_pos == self._size:
                read_pos = 0
            if read_pos > self._size:
                logger.warning("get, read_pos=%d, but size=%d.", read_pos, self._size)
                read_pos = 0
            cursor.read_pos = read_pos
            cursor.data_count = self._data_count
            return chunk