# srtlive

Building blocks for an SRT live streaming server, in plain Python with no
third-party dependencies. Failures are reported by raising exceptions
(`SlsError`, `ConfError`, `RelayUrlError`, `ValueError`).

## Modules

### `srtlive.common`

- `gettime_us()`, `gettime_ms()` – wall-clock time in micro- and milliseconds.
- `format_time(seconds, fmt)` and `default_time_string()` – local time as text
  (`YYYY-mm-dd HH:MM:SS` by default).
- `hash_key(data)` – the 32-bit x31 string hash used to pick upstreams.
- `gethostbyname(hostname)` – first IP address of a host, or `SlsError`.
- `mkdir_p(path)` – create a directory and its parents.
- `remove_marks(text)` – strip one pair of surrounding `'` or `"` quotes.
- `split_string(text, separator, count=-1)` and
  `find_string(items, needle, case_sensitive=True)`.
- PID-file control: `read_pid`, `write_pid`, `remove_pid` (empties the file)
  and `send_cmd(cmd)`, which sends `SIGHUP` for `"reload"` or `SIGINT` for
  `"stop"` to the process named in the PID file (default
  `/tmp/sls/pid.txt`) and returns the signal sent, or `None`.
- Constants such as `TS_PACK_LEN` (188) and `TS_UDP_LEN` (1316).

### `srtlive.tsinfo`

`parse_ts_packet(packet, info)` inspects one 188-byte TS packet and updates a
`TsInfo`: the PAT and PMT packets, the PMT PID, the elementary stream PID,
DTS/PTS and, when `info.need_spspps` is set, the H.264 SPS and PPS (through
`parse_spspps`). Once SPS, PPS, PAT and PMT are all known, `info.ts_data`
holds a 1316-byte payload of PAT, PMT and a packet carrying SPS+PPS.
`parse_pes_pts(buf)` decodes a 5-byte PES timestamp.

### `srtlive.recycle_array`

`RecycleArray` is a fixed-size ring buffer (1316 × 1024 bytes by default).
`put(data)` writes, overwriting the oldest bytes; every reader keeps its own
`ReadCursor` and calls `get(cursor, size, aligned=0)`. The first `get` for a
cursor only positions it at the current write point. `count()` is the total
number of bytes ever written, `set_size(n)` replaces the buffer, and
`last_read_time` records the last successful read.

### `srtlive.sync_clock`

`SyncClock.wait(rts_ms)` sleeps until the wall clock catches up with the
stream time; a gap of `jitter` ms or more (1000 by default) resets the
reference point. The clock and sleep functions can be injected.

### `srtlive.ts_file_reader`

`TSFileTimeReader` plays a TS file back at its own pace.
`generate_rts_file(ts_file_name)` writes `<name>.rts` (unless it exists),
made of records of an 8-byte little-endian 90 kHz timestamp followed by a
1316-byte payload. `open(ts_file_name, loop=True)` prepares and opens that
file, `get(size=1316)` returns `(payload, time_ms)`, and `close()` closes it.
The reader is also a context manager.

### `srtlive.conf`

The nginx-like configuration format: `key value;` lines inside
`name { ... }` blocks, `#` comments. Register each block name on a
`ConfRegistry` with a factory returning a `ConfBlock` and a table of
`ConfCmd` entries, whose setters (`set_int`, `set_string`, `set_double`,
`set_bool`) check ranges and store values as attributes. `parse(lines)` and
`load(path)` return the first top-level block; blocks are linked through
`child` and `sibling`, walked with `children()` and `siblings()`, and counted
with `block_count`. `parse_argv(argv, options, cmds)` applies `-name value`
pairs to an options object; a lone `-h` raises `ConfError` with the help text.
`find_cmd` and `string_split` are also available.

### `srtlive.thread`, `srtlive.role_list`, `srtlive.tcp_role`

- `WorkerThread` – subclass it and override `work()`, polling `is_exit()`;
  `start()` runs it in a daemon thread, `stop()` waits for it and calls
  `clear()`.
- `RoleList` – a thread-safe FIFO with `push`, `pop`, `erase` (calls
  `uninit()` on every role) and `len()`.
- `TCPRole` – one TCP socket opened with `open_listener(port, backlog)` or as
  a non-blocking client with `open_client(host, port)`; `read`, `write`,
  `fileno`, `close`, and usable as a context manager.

### `srtlive.relay` and `srtlive.relay_manager`

- `parse_relay_url(url)` splits `srt://host:port?streamid=id` into
  `(host, port, "id")` and `srt://host:port/app/stream` into
  `(host, port, "host/app/stream")`, raising `RelayUrlError` otherwise.
- `register_relay_conf(registry)` adds the `relay` block (`RelayConf`, keys
  `type`, `mode`, `upstreams`, `reconnect_interval`, `idle_streams_timeout`).
- `PullMode` enumerates `LOOP`, `HASH` and `ALL`.
- `RelayInfo` holds the settings shared by a manager's relays;
  `hash_url(stream_name, upstreams)` and
  `build_hash_relay_url(stream_name, upstreams)` pick an upstream by the
  stream-name hash; `format_stat_base(...)` fills a printf-style stat template.

## Example

```python
from srtlive.conf import ConfRegistry
from srtlive.relay import parse_relay_url, register_relay_conf
from srtlive.relay_manager import build_hash_relay_url

registry = ConfRegistry()
register_relay_conf(registry)
relay = registry.parse([
    "relay {",
    "    type pull;",
    "    mode hash;",
    "    upstreams 10.0.0.1:8080/live;",
    "}",
])
print(relay.type, relay.upstreams)

print(parse_relay_url("srt://127.0.0.1:8080?streamid=uplive.example.com/live/test"))
print(build_hash_relay_url("test", ["10.0.0.1:8080/live", "10.0.0.2:8080/live"]))
```

## What this package does not do

It provides no server and no command-line program: there is nothing here that
opens SRT sockets, accepts publishers and players, pulls or pushes relays, or
posts statistics over HTTP. The relay helpers only parse URLs, choose
upstreams and format stat lines; the configuration module only reads the
`relay` block out of the box, and any other block must be registered by the
caller.

## Running the tests

```
pip install -e .[test]
pytest
```