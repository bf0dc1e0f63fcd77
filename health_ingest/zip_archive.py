"""
Minimal ZIP reader for workout export bundles.

Only what the exports use: central directory walk, local header lookup,
stored (0) and raw deflate (8) payloads. No Zip64, encryption or
multi-disk support. Malformed input shortens the entry list or yields
None payloads; nothing raises.
"""
from __future__ import annotations

import struct
import zlib
from typing import List, Optional

import structlog

from .models import ZipEntry

logger = structlog.get_logger()

EOCD_SIGNATURE = 0x06054B50
CENTRAL_SIGNATURE = 0x02014B50

EOCD_SIZE = 22
CENTRAL_HEADER_SIZE = 46
LOCAL_HEADER_SIZE = 30
MAX_COMMENT_SIZE = 0xFFFF

METHOD_STORED = 0
METHOD_DEFLATE = 8


def _u16(data: bytes, offset: int) -> int:
    return struct.unpack_from("<H", data, offset)[0]


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def _decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def find_end_of_central_directory(data: bytes) -> Optional[int]:
    """Offset of the EOCD record, searched backwards over the max comment span."""
    if len(data) < EOCD_SIZE:
        return None
    lowest = max(0, len(data) - EOCD_SIZE - MAX_COMMENT_SIZE)
    for pos in range(len(data) - EOCD_SIZE, lowest - 1, -1):
        if _u32(data, pos) == EOCD_SIGNATURE:
            return pos
    return None


def _resolve_data_start(data: bytes, local_offset: int) -> Optional[int]:
    if local_offset + LOCAL_HEADER_SIZE > len(data):
        return None
    name_len = _u16(data, local_offset + 26)
    extra_len = _u16(data, local_offset + 28)
    return local_offset + LOCAL_HEADER_SIZE + name_len + extra_len


def decode(data: bytes) -> List[ZipEntry]:
    """Walk the central directory and return the entries whose payload fits the buffer."""
    data = bytes(data)
    eocd = find_end_of_central_directory(data)
    if eocd is None:
        logger.debug("zip_no_eocd", size=len(data))
        return []

    total_entries = _u16(data, eocd + 10)
    pos = _u32(data, eocd + 16)

    entries: List[ZipEntry] = []
    for index in range(total_entries):
        if pos + CENTRAL_HEADER_SIZE > len(data):
            logger.debug("zip_central_truncated", index=index, offset=pos)
            break
        if _u32(data, pos) != CENTRAL_SIGNATURE:
            logger.debug("zip_central_bad_signature", index=index, offset=pos)
            break

        method = _u16(data, pos + 10)
        compressed_size = _u32(data, pos + 20)
        name_len = _u16(data, pos + 28)
        extra_len = _u16(data, pos + 30)
        comment_len = _u16(data, pos + 32)
        local_offset = _u32(data, pos + 42)

        name_start = pos + CENTRAL_HEADER_SIZE
        if name_start + name_len > len(data):
            logger.debug("zip_name_out_of_range", index=index, offset=pos)
            break
        name = _decode_text(data[name_start:name_start + name_len])
        pos = name_start + name_len + extra_len + comment_len

        data_start = _resolve_data_start(data, local_offset)
        if data_start is None or data_start + compressed_size > len(data):
            logger.debug("zip_entry_out_of_range", name=name, local_offset=local_offset)
            continue

        entries.append(
            ZipEntry(
                name=name,
                compression_method=method,
                compressed_size=compressed_size,
                data_start=data_start,
            )
        )
    return entries


def read_entry(entry: ZipEntry, data: bytes) -> Optional[str]:
    """Payload of one entry as text, or None when it cannot be recovered."""
    if entry.data_start < 0 or entry.data_end > len(data):
        logger.warning("zip_payload_out_of_range", name=entry.name, end=entry.data_end, size=len(data))
        return None
    raw = bytes(data[entry.data_start:entry.data_end])

    if entry.compression_method == METHOD_STORED:
        return _decode_text(raw)

    if entry.compression_method == METHOD_DEFLATE:
        try:
            inflater = zlib.decompressobj(-zlib.MAX_WBITS)
            inflated = inflater.decompress(raw) + inflater.flush()
        except zlib.error as e:
            logger.warning("zip_inflate_failed", name=entry.name, error=str(e))
            return None
        if not inflater.eof:
            # compressed size ends before the deflate stream does
            logger.warning("zip_inflate_truncated", name=entry.name, compressed_size=entry.compressed_size)
            return None
        return _decode_text(inflated)

    logger.warning("zip_unsupported_method", name=entry.name, method=entry.compression_method)
    return None
