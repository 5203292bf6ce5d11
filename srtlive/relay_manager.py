"""Shared relay-manager logic: upstream selection and relay stat lines."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from .common import hash_key
from .relay import PullMode

# printf conversion: flags, width, precision, length modifier, conversion.
_PRINTF_RE = re.compile(
    r"%(?P<spec>[-+ #0]*(?:\d+|\*)?(?:\.(?:\d+|\*))?)(?:hh|h|ll|l|L|q|j|z|t)?(?P<conv>[diouxXeEfFgGcs%])"
)


@dataclass
class RelayInfo:
    """Settings shared by every relay a manager creates."""

    upstreams: list[str] = field(default_factory=list)
    type: str = ""
    mode: PullMode = PullMode.LOOP
    reconnect_interval: int = 0  # seconds
    idle_streams_timeout: int = 0  # seconds, -1: unlimited


def hash_url(stream_name: str, upstreams: Sequence[str]) -> str:
    """Pick the upstream for stream_name by hashing the name; '' if none."""
    if not upstreams:
        return ""
    return upstreams[hash_key(stream_name) % len(upstreams)]


def build_hash_relay_url(stream_name: str, upstreams: Sequence[str]) -> str:
    """Return 'srt://<upstream>/<stream_name>' for the hashed upstream."""
    if not upstreams:
        raise ValueError("no upstreams to choose from")
    return f"srt://{hash_url(stream_name, upstreams)}/{stream_name}"


def _printf(template: str, args: Sequence[Any]) -> str:
    """Apply a printf-style template; surplus arguments are ignored."""
    remaining = iter(args)

    def substitute(match: re.Match[str]) -> str:
        conv = match.group("conv")
        if conv == "%":
            return "%"
        spec = match.group("spec")
        if "*" in spec:
            raise ValueError("'*' width or precision is not supported")
        try:
            value = next(remaining)
        except StopIteration:
            raise ValueError(
                f"template needs more arguments than the {len(args)} given"
            ) from None
        if conv == "u":
            conv = "d"
        try:
            return ("%" + spec + conv) % (value,)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"cannot format {value!r} with '%{spec}{conv}': {exc}"
            ) from exc

    return _PRINTF_RE.sub(substitute, template)


def format_stat_base(
    template: str,
    listen_port: int,
    role_name: str,
    app_uplive: str,
    stream_name: str,
    url: str,
    peer_name: str,
    peer_port: int,
    cur_time: str,
) -> str:
    """Fill a relay's stat template with its connection details, in order."""
    return _printf(
        template,
        (
            listen_port,
            role_name,
            app_uplive,
            stream_name,
            url,
            peer_name,
            peer_port,
            cur_time,
        ),
    )