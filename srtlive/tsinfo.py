"""MPEG-TS packet inspection: PAT/PMT capture, PES timestamps and H.264 SPS/PPS."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .common import (
    INVALID_DTS_PTS,
    INVALID_PID,
    PAT_PID,
    TS_PACK_LEN,
    TS_SYNC_BYTE,
    TS_UDP_LEN,
)

logger = logging.getLogger(__name__)

H264_NAL_SPS = 7
H264_NAL_PPS = 8

_NULL_PACKET_HEADER = bytes((0x47, 0x1F, 0xFF, 0x00))
_PES_STREAM_IDS = (0xE0, 0xC0)


def _null_udp_payload() -> bytearray:
    data = bytearray(TS_UDP_LEN)
    for start in range(0, TS_UDP_LEN, TS_PACK_LEN):
        data[start:start + len(_NULL_PACKET_HEADER)] = _NULL_PACKET_HEADER
    return data


@dataclass
class TsInfo:
    """State gathered while scanning a transport stream."""

    es_pid: int = INVALID_PID
    dts: int = INVALID_DTS_PTS
    pts: int = INVALID_DTS_PTS
    need_spspps: bool = False
    sps: bytes = b""
    pps: bytes = b""
    pat: bytes = b""
    pmt: bytes = b""
    pmt_pid: int = INVALID_PID
    ts_data: bytearray = field(default_factory=_null_udp_payload)


def parse_pes_pts(buf: bytes) -> int:
    """Decode a 33-bit PES timestamp from its 5-byte field."""
    if len(buf) < 5:
        raise ValueError("a PES timestamp needs 5 bytes")
    high = (buf[0] & 0x0E) << 29
    middle = (((buf[1] << 8) | buf[2]) >> 1) << 15
    low = ((buf[3] << 8) | buf[4]) >> 1
    return high | middle | low


def _store_nal(info: TsInfo, nal_type: int, nal: bytes) -> None:
    if nal_type == H264_NAL_SPS:
        info.sps = nal
    elif nal_type == H264_NAL_PPS:
        info.pps = nal
    else:
        logger.info("parse_spspps, wrong nal type=%d.", nal_type)


def parse_spspps(es: bytes, info: TsInfo) -> bool:
    """Extract SPS and PPS NAL units (with start codes) into info.

    Returns True once both have been found.
    """
    es = bytes(es)
    length = len(es)
    start: int | None = None
    nal_type = 0
    pos = 0
    while pos < length - 4:
        is_start_code = (
            es[pos] == 0
            and es[pos + 1] == 0
            and es[pos + 2] == 0
            and (es[pos + 3] == 1 or (es[pos + 3] == 0 and es[pos + 4] == 1))
        )
        if not is_start_code:
            pos += 1
            continue
        if start is not None:
            _store_nal(info, nal_type, es[start:pos])
            if info.sps and info.pps:
                return True
        nal_pos = pos + (4 if es[pos + 3] else 5)
        nal_type = es[nal_pos] & 0x1F if nal_pos < length else 0
        if nal_type in (H264_NAL_SPS, H264_NAL_PPS):
            start = pos
        pos = nal_pos

    if start is not None:
        _store_nal(info, nal_type, es[start:])
        if info.sps and info.pps:
            return True
    return False


def _build_spspps_packets(info: TsInfo, pid: int, stream_id: int) -> None:
    """Fill info.ts_data with PAT, PMT and one packet carrying SPS+PPS."""
    data = info.ts_data
    data[0:TS_PACK_LEN] = info.pat[:TS_PACK_LEN]
    data[TS_PACK_LEN:2 * TS_PACK_LEN] = info.pmt[:TS_PACK_LEN]
    pos = 2 * TS_PACK_LEN

    pes_len = len(info.sps) + len(info.pps) + 9 + 5
    if pes_len > TS_PACK_LEN - 4:
        logger.info("pid=%d, pes size=%d is abnormal.", pid, pes_len)
        return

    pos += 1  # the sync byte is already in place
    info.es_pid = pid
    data[pos] = 0x40 | ((pid >> 8) & 0xFF)
    data[pos + 1] = pid & 0xFF
    pos += 2
    data[pos] = 0x10
    ad_len = TS_PACK_LEN - 4 - pes_len - 1
    if ad_len > 0:
        data[pos] = 0x30
        data[pos + 1] = ad_len
        data[pos + 2] = 0x00
        pos += 3
        data[pos:pos + ad_len - 1] = b"\xff" * (ad_len - 1)
        pos += ad_len - 1
    else:
        pos += 1

    header = bytes((0, 0, 1, stream_id, 0, 0, 0x80, 0x80, 5, 0, 0, 0, 0, 0))
    body = header + info.sps + info.pps
    data[pos:pos + len(body)] = body


def _pes_to_es(pes: bytes, info: TsInfo, pid: int) -> bool:
    if len(pes) < 9 or pes[0] != 0x00 or pes[1] != 0x00 or pes[2] != 0x01:
        return False
    stream_id = pes[3]
    if stream_id not in _PES_STREAM_IDS:
        logger.info("pes2es: pid=%d, wrong pes stream_id=0x%x.", pid, stream_id)
        return False
    flags = pes[7]
    pos = 9
    info.dts = INVALID_DTS_PTS
    info.pts = INVALID_DTS_PTS
    if flags & 0xC0 == 0x80:
        if len(pes) < pos + 5:
            return False
        info.dts = info.pts = parse_pes_pts(pes[pos:pos + 5])
        pos += 5
    elif flags & 0xC0 == 0xC0:
        if len(pes) < pos + 10:
            return False
        info.pts = parse_pes_pts(pes[pos:pos + 5])
        pos += 5
        info.dts = parse_pes_pts(pes[pos:pos + 5])
        pos += 5

    ok = True
    if info.need_spspps:
        ok = parse_spspps(pes[pos:], info)
        if info.sps and info.pps and info.pat and info.pmt:
            _build_spspps_packets(info, pid, stream_id)
    return ok


def _parse_pat(section: bytes, info: TsInfo) -> bool:
    if len(section) < 3:
        return False
    section_length = ((section[1] & 0x0F) << 8) | section[2]
    for n in range(0, section_length - 12, 4):
        if 12 + n > len(section):
            break
        program_num = (section[8 + n] << 8) | section[9 + n]
        if program_num != 0:
            info.pmt_pid = ((section[10 + n] & 0x1F) << 8) | section[11 + n]
    return True


def parse_ts_packet(packet: bytes, info: TsInfo) -> bool:
    """Inspect one 188-byte TS packet and update info.

    Returns True when the packet yielded usable table or PES data.
    """
    packet = bytes(packet)
    if len(packet) < TS_PACK_LEN:
        raise ValueError(f"a TS packet needs {TS_PACK_LEN} bytes, got {len(packet)}")
    if packet[0] != TS_SYNC_BYTE:
        logger.info("ts2es: packet[0]=0x%x not 0x47.", packet[0])
        return False
    if not packet[1] & 0x40:
        return False

    pid = ((packet[1] & 0x1F) << 8) | packet[2]
    if pid == PAT_PID:
        info.pat = packet[:TS_PACK_LEN]
    else:
        if info.pmt_pid == pid:
            info.pmt = packet[:TS_PACK_LEN]
            return True
        if info.es_pid != INVALID_PID and pid != info.es_pid:
            return False

    afc = (packet[3] >> 4) & 3
    if afc == 0:
        return False
    has_adaptation = afc & 2
    has_payload = afc & 1

    pos = 4
    if has_adaptation:
        pos += packet[4] + 1
    if pos >= TS_PACK_LEN or has_payload != 1:
        logger.info("ts2es: pid=%d, payload pos=%d, no payload.", pid, pos)
        return False

    if pid == PAT_PID:
        pos += 1  # pointer field
        return _parse_pat(packet[pos:TS_PACK_LEN], info)

    ok = _pes_to_es(packet[pos:TS_PACK_LEN], info, pid)
    if info.dts != INVALID_DTS_PTS:
        info.es_pid = pid
    if info.sps and info.pps:
        info.es_pid = pid
    return ok