"""Relay configuration and parsing of upstream relay URLs."""

from __future__ import annotations

import enum
import re

from .common import SlsError
from .conf import ConfBlock, ConfCmd, ConfRegistry, set_int, set_string

RELAY_URL_HINT = (
    "url must like 'srt://hostname:port?streamid=your_stream_id' "
    "or 'srt://hostname:port/app/stream_name'"
)


class PullMode(enum.IntEnum):
    """How a puller chooses among its upstreams."""

    LOOP = 0
    HASH = 1
    ALL = 2


class RelayUrlError(SlsError, ValueError):
    """Raised when a relay URL does not have one of the accepted forms."""


class RelayConf(ConfBlock):
    """The 'relay' configuration block."""

    def __init__(self, name: str = "relay") -> None:
        super().__init__(name)
        self.type = ""
        self.mode = ""
        self.upstreams = ""
        self.reconnect_interval = 0
        self.idle_streams_timeout = 0


RELAY_CMDS: tuple[ConfCmd, ...] = (
    ConfCmd("type", "pull, push", set_string, 1, 31),
    ConfCmd("mode", "relay mode.", set_string, 1, 31),
    ConfCmd("upstreams", "upstreams", set_string, 1, 1023),
    ConfCmd("reconnect_interval", "reconnect interval, unit s", set_int, 1, 3600),
    ConfCmd("idle_streams_timeout", "idle streams timeout, unit s", set_int, -1, 3600),
)


def register_relay_conf(registry: ConfRegistry) -> None:
    """Make the 'relay' block known to registry."""
    registry.register("relay", RelayConf, RELAY_CMDS)


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_relay_url(url: str) -> tuple[str, int, str]:
    """Split a relay URL into (host, port, streamid).

    'srt://host:port?streamid=id' gives streamid 'id';
    'srt://host:port/app/stream' gives streamid 'host/app/stream'.
    """
    if not url:
        raise RelayUrlError(f"url='{url}', {RELAY_URL_HINT}.")
    colon = url.find(":")
    if colon == -1:
        raise RelayUrlError(f"no ':', url='{url}', {RELAY_URL_HINT}.")
    if url[:colon] != "srt":
        raise RelayUrlError(f"not 'srt' prefix, url='{url}', {RELAY_URL_HINT}.")
    rest = url[colon + 3:]  # skip '://'

    colon = rest.find(":")
    if colon == -1:
        raise RelayUrlError(f"not 'hostname:port', url='{url}', {RELAY_URL_HINT}.")
    host = rest[:colon]
    rest = rest[colon + 1:]

    query = rest.find("?")
    if query == -1:
        app_slash = rest.find("/")
        if app_slash == -1:
            raise RelayUrlError(f"url='{url}', {RELAY_URL_HINT}.")
        stream_slash = rest.find("/", app_slash + 1)
        if stream_slash == -1:
            raise RelayUrlError(f"url='{url}', {RELAY_URL_HINT}.")
        stream = rest[stream_slash + 1:]
        if not stream or "/" in stream[1:]:
            raise RelayUrlError(f"url='{url}', {RELAY_URL_HINT}.")
        port = _atoi(rest[:app_slash])
        return host, port, host + rest[app_slash:]

    port = _atoi(rest[:query])
    param = rest[query + 1:]
    key, sep, streamid = param.partition("=")
    if not sep:
        raise RelayUrlError(
            f"url='{url}', no 'streamid=', url must like 'hostname:port?streamid=your_stream_id'."
        )
    if key != "streamid":
        raise RelayUrlError(
            f"url='{url}', no 'streamid', url must like 'hostname:port?streamid=your_stream_id'."
        )
    if not streamid:
        raise RelayUrlError(
            f"url='{url}', empty stream id, url must like 'hostname:port?streamid=your_stream_id'."
        )
    return host, port, streamid