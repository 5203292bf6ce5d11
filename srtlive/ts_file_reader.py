"""Plays a TS file back at its own pace using a companion '.rts' timing file.

The '.rts' file is a sequence of records, each an 8-byte little-endian
90 kHz timestamp followed by one 1316-byte UDP payload (seven TS packets).
"""

from __future__ import annotations

import logging
import os
import struct
from pathlib import Path
from typing import BinaryIO

from .common import INVALID_DTS_PTS, INVALID_PID, TS_PACK_LEN, TS_UDP_LEN, SlsError
from .tsinfo import TsInfo, parse_ts_packet

logger = logging.getLogger(__name__)

_RTS_STAMP = struct.Struct("<q")
RTS_PACK_LEN = TS_UDP_LEN + _RTS_STAMP.size
RTS_BUF_SIZE = RTS_PACK_LEN * 100
RTS_SUFFIX = ".rts"

_NULL_HEADER = bytes((0x47, 0x1F, 0xFF))


def _div_trunc(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


class TSFileTimeReader:
    """Reads timestamped UDP payloads from a TS file, optionally looping."""

    def __init__(self) -> None:
        self.file_name = ""
        self._fh: BinaryIO | None = None
        self._loop = True
        self._dts_pid = INVALID_PID
        self._dts = INVALID_DTS_PTS
        self._pts = INVALID_DTS_PTS
        self._buffer = bytearray()
        self._udp_duration = 0
        self.readed_count = 0

    def __enter__(self) -> TSFileTimeReader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self, ts_file_name: str | os.PathLike[str], loop: bool = True) -> None:
        """Prepare the '.rts' file for ts_file_name and open it for reading."""
        name = os.fspath(ts_file_name) if ts_file_name is not None else ""
        if not name:
            raise SlsError(f"open, wrong file_name='{name}'.")
        try:
            self.generate_rts_file(name)
        except SlsError as exc:
            logger.info("open, generate_rts_file failed, '%s': %s.", name, exc)
        self.close()
        try:
            self._fh = open(self.file_name, "rb")
        except OSError as exc:
            raise SlsError(f"open file='{name}' failed, '{exc}'.") from exc
        self._buffer = bytearray()
        self._loop = loop
        self.readed_count = 0
        logger.info("open, ok, file_name='%s', loop=%s.", self.file_name, loop)

    def close(self) -> None:
        """Close the '.rts' file if it is open."""
        if self._fh is not None:
            logger.info("close, ok, file_name='%s'.", self.file_name)
            self._fh.close()
            self._fh = None

    def _take(self, size: int) -> bytes:
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk

    def _refill(self) -> None:
        assert self._fh is not None
        chunk = self._fh.read(RTS_BUF_SIZE)
        if not chunk:
            if not self._loop:
                raise SlsError(f"get, file end, file='{self.file_name}'.")
            logger.info("get, loop, reopen file='%s'.", self.file_name)
            self._fh.close()
            self._fh = None
            try:
                self._fh = open(self.file_name, "rb")
            except OSError as exc:
                raise SlsError(f"get, open file='{self.file_name}' failed, '{exc}'.") from exc
            self.readed_count = 0
            chunk = self._fh.read(RTS_BUF_SIZE)
            if not chunk:
                raise SlsError(f"get, read data failed, file='{self.file_name}'.")
        self._buffer += chunk

    def get(self, size: int = TS_UDP_LEN) -> tuple[bytes, int]:
        """Return the next payload of size bytes and its time in milliseconds."""
        if self._fh is None:
            raise SlsError(f"get, failed, file not open, file_name='{self.file_name}'.")
        if not self._buffer:
            self._refill()
        stamp = self._take(_RTS_STAMP.size)
        if len(stamp) != _RTS_STAMP.size:
            raise SlsError(f"get, failed, timestamp has {len(stamp)} bytes.")
        (rts,) = _RTS_STAMP.unpack(stamp)
        tm_ms = _div_trunc(rts, 90)  # rts is a 90 kHz clock
        data = self._take(size)
        self.readed_count += len(data)
        if len(data) != size:
            raise SlsError(f"get, failed, got {len(data)} bytes, not {size}.")
        return data, tm_ms

    def generate_rts_file(self, ts_file_name: str | os.PathLike[str]) -> Path:
        """Write '<ts_file_name>.rts' unless it exists already; return its path."""
        name = os.fspath(ts_file_name)
        if not name:
            raise SlsError("generate_rts_file, failed, empty ts_file_name.")
        rts_path = Path(name + RTS_SUFFIX)
        self.file_name = str(rts_path)
        if rts_path.exists():
            logger.info("generate_rts_file, '%s' exist.", rts_path)
            return rts_path

        try:
            ts_fh = open(name, "rb")
        except OSError as exc:
            raise SlsError(f"generate_rts_file, open file='{name}' failed, '{exc}'.") from exc
        with ts_fh:
            try:
                rts_fh = open(rts_path, "wb")
            except OSError as exc:
                raise SlsError(
                    f"generate_rts_file, create file='{rts_path}' failed, '{exc}'."
                ) from exc
            with rts_fh:
                self._write_records(ts_fh, rts_fh)
        logger.info("generate_rts_file, ok, file='%s'.", rts_path)
        return rts_path

    def _write_records(self, ts_fh: BinaryIO, rts_fh: BinaryIO) -> None:
        pending = bytearray()
        info = TsInfo()
        self._dts = INVALID_DTS_PTS
        self._pts = INVALID_DTS_PTS
        self._udp_duration = 0

        def write(rts: int, payload: bytes) -> None:
            rts_fh.write(_RTS_STAMP.pack(rts))
            rts_fh.write(payload)

        while True:
            packet = ts_fh.read(TS_PACK_LEN)
            if len(packet) < TS_PACK_LEN:
                break
            parse_ts_packet(packet, info)
            if info.dts == INVALID_DTS_PTS:
                pending += packet
                continue
            if self._dts == INVALID_DTS_PTS:
                self._dts = info.dts
                self._pts = info.pts
                self._dts_pid = info.es_pid
                info.dts = info.pts = INVALID_DTS_PTS
                pending += packet
                continue
            udp_count = len(pending) // TS_UDP_LEN
            if udp_count > 0:
                self._udp_duration = _div_trunc(info.dts - self._dts, udp_count)
                rts = self._dts
                for _ in range(udp_count):
                    write(rts, bytes(pending[:TS_UDP_LEN]))
                    del pending[:TS_UDP_LEN]
                    rts += self._udp_duration
                self._dts = info.dts
                self._pts = info.pts
            logger.debug("generate_rts_file, dts_pid=%d, dts=%d.", self._dts_pid, info.dts)
            info.dts = info.pts = INVALID_DTS_PTS
            pending += packet

        rts = self._dts
        if len(pending) < TS_UDP_LEN:
            return
        last = bytearray(TS_UDP_LEN)
        while len(pending) >= TS_UDP_LEN:
            last[:] = pending[:TS_UDP_LEN]
            del pending[:TS_UDP_LEN]
            write(rts, bytes(last))
            rts += self._udp_duration
        if pending:
            # Pad the tail with null-packet headers over the previous payload.
            remainder = len(pending)
            last[:remainder] = pending
            for start in range(remainder, TS_UDP_LEN, TS_PACK_LEN):
                last[start:start + len(_NULL_HEADER)] = _NULL_HEADER
            write(rts, bytes(last))