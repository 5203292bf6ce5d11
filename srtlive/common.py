"""Shared helpers: clocks, hashing, string utilities and pid-file control."""

from __future__ import annotations

import logging
import os
import re
import signal
import socket
import time
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

TS_PACK_LEN = 188
TS_UDP_LEN = 1316  # 7 * 188
TS_SYNC_BYTE = 0x47
INVALID_PID = -1
PAT_PID = 0
INVALID_DTS_PTS = -1
MAX_PES_PAYLOAD = 200 * 1024

SHORT_STR_MAX_LEN = 256
STR_MAX_LEN = 1024
URL_MAX_LEN = STR_MAX_LEN
STR_DATE_TIME_LEN = 32
IP_MAX_LEN = 46

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_PID_FILE = Path("/tmp/sls/pid.txt")

_HASH_MASK = 0xFFFFFFFF


class SlsError(Exception):
    """Raised when a server-level operation fails."""


def gettime_us() -> int:
    """Return the wall-clock time in microseconds."""
    return time.time_ns() // 1000


def gettime_ms() -> int:
    """Return the wall-clock time in milliseconds."""
    return gettime_us() // 1000


def format_time(seconds: float, fmt: str) -> str:
    """Format a Unix time (seconds) in local time with a strftime pattern."""
    return time.strftime(fmt, time.localtime(int(seconds)))


def default_time_string() -> str:
    """Return the current local time as 'YYYY-mm-dd HH:MM:SS'."""
    return format_time(gettime_us() // 1_000_000, DEFAULT_TIME_FORMAT)


def hash_key(data: str | bytes) -> int:
    """Return the 32-bit multiplicative (x31) hash of the data.

    Bytes are taken as signed chars, so bytes above 0x7F contribute negatively.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    key = 0
    for byte in raw:
        signed = byte - 256 if byte >= 128 else byte
        key = (key * 31 + signed) & _HASH_MASK
    return key


def gethostbyname(hostname: str) -> str:
    """Resolve a host name to its first IP address."""
    try:
        return socket.gethostbyname(hostname)
    except (socket.gaierror, socket.herror, UnicodeError) as exc:
        raise SlsError(f"gethostbyname error for host: {hostname}") from exc


def mkdir_p(path: str | os.PathLike[str]) -> None:
    """Create a directory and all missing parents; '/' and '\\' both separate."""
    text = os.fspath(path)
    if not text:
        raise SlsError("mkdir_p: empty path")
    normalized = text.replace("\\", "/")
    try:
        os.makedirs(normalized, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise SlsError(f"mkdir '{text}' failed: {exc}") from exc


def remove_marks(text: str) -> str:
    """Strip one pair of matching surrounding single or double quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def split_string(text: str, separator: str, count: int = -1) -> list[str]:
    """Split text on separator, at most count times (count <= 0: no limit)."""
    if not separator:
        raise ValueError("separator must not be empty")
    return text.split(separator, count if count > 0 else -1)


def find_string(items: Iterable[str], needle: str, case_sensitive: bool = True) -> str:
    """Return the first item containing needle, or '' if none does.

    When not case sensitive, the matching is done on lower-cased text and the
    lower-cased item is returned.
    """
    if not case_sensitive:
        needle = needle.lower()
    for item in items:
        candidate = item if case_sensitive else item.lower()
        if needle in candidate:
            return candidate
    return ""


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def read_pid(pid_file: str | os.PathLike[str] = DEFAULT_PID_FILE) -> int:
    """Return the pid stored in the pid file, or 0 if there is none."""
    path = Path(pid_file)
    try:
        content = path.read_text(encoding="ascii", errors="replace")[:128]
    except FileNotFoundError:
        logger.info("no pid file='%s'.", path)
        return 0
    except OSError as exc:
        logger.info("open file='%s' failed: %s.", path, exc)
        return 0
    return _atoi(content)


def write_pid(pid: int, pid_file: str | os.PathLike[str] = DEFAULT_PID_FILE) -> None:
    """Write the pid into the pid file, creating its directory if needed."""
    path = Path(pid_file)
    mkdir_p(path.parent)
    try:
        path.write_text(str(pid), encoding="ascii")
    except OSError as exc:
        raise SlsError(f"open file='{path}' failed: {exc}") from exc
    logger.info("write pid ok, file='%s', pid=%d.", path, pid)


def remove_pid(pid_file: str | os.PathLike[str] = DEFAULT_PID_FILE) -> None:
    """Empty the pid file if it exists."""
    path = Path(pid_file)
    if path.exists():
        path.write_text("", encoding="ascii")


_COMMAND_SIGNALS = {
    "reload": signal.SIGHUP,
    "stop": signal.SIGINT,
}


def send_cmd(
    cmd: str, pid_file: str | os.PathLike[str] = DEFAULT_PID_FILE
) -> signal.Signals | None:
    """Send 'reload' (SIGHUP) or 'stop' (SIGINT) to the running server.

    Returns the signal sent, or None when there is no running server or the
    command is unknown.
    """
    if cmd is None:
        raise SlsError("send_cmd failed, cmd is null.")
    pid = read_pid(pid_file)
    if pid <= 0:
        logger.info("send_cmd failed, pid is invalid.")
        return None
    sig = _COMMAND_SIGNALS.get(cmd)
    if sig is None:
        return None
    logger.info("send_cmd ok, %s, sls pid = %d, send %s to it.", cmd, pid, sig.name)
    os.kill(pid, sig)
    return sig