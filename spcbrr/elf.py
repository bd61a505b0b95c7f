"""Writing assembled segments to a 32-bit little-endian ELF executable."""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterable, Mapping, Union

_ELF_MAGIC = b"\x7fELF"
_ELFCLASS32 = 1
_ELFDATA2LSB = 1
_EV_CURRENT = 1
_ELFOSABI_STANDALONE = 255
_ET_EXEC = 2
# "Sony DSP processor"
_EM_PDSP = 63

_PT_LOAD = 1
_SHT_PROGBITS = 1
_SHT_STRTAB = 3
_SHF_WRITE = 0x1
_SHF_ALLOC = 0x2
_SHF_EXECINSTR = 0x4

_FILE_HEADER_SIZE = 52
_PROGRAM_HEADER_SIZE = 32
_SECTION_HEADER_SIZE = 40
_HEADER_ALIGN = 4

_U32_MASK = 0xFFFFFFFF
_U64_MASK = 0xFFFFFFFFFFFFFFFF
_SHN_LORESERVE = 0xFF00

SegmentData = Union[bytes, bytearray, Iterable[int]]


def _align(value: int, alignment: int) -> int:
    return value + (-value % alignment)


class _Layout:
    """Tracks file offsets while space in the output is reserved."""

    def __init__(self) -> None:
        self.length = 0

    def reserve(self, size: int, alignment: int) -> int:
        if size == 0:
            return self.length
        self.length = _align(self.length, alignment)
        offset = self.length
        self.length += size
        return offset


def _build_string_table(names: Iterable[bytes]) -> tuple[bytes, dict[bytes, int]]:
    """Build a string table that starts with a null name and shares common suffixes."""
    data = bytearray(b"\0")
    offsets: dict[bytes, int] = {}
    previous = b""
    # Ordering by reversed content places every suffix right after a string that ends with it.
    for name in sorted(set(names), key=lambda text: text[::-1], reverse=True):
        if previous.endswith(name):
            offsets[name] = len(data) - len(name) - 1
        else:
            offsets[name] = len(data)
            data += name + b"\0"
            previous = name
    return bytes(data), offsets


def _section_header(
    name: int,
    sh_type: int,
    flags: int,
    address: int,
    offset: int,
    size: int,
    alignment: int,
) -> bytes:
    return struct.pack(
        "<10I",
        name,
        sh_type,
        flags,
        address & _U32_MASK,
        offset,
        size,
        0,
        0,
        alignment,
        0,
    )


def write_to_elf(
    output_stream: BinaryIO, segments: Mapping[int, SegmentData], entry_point: int
) -> None:
    """Write segments (start address to data) as loadable sections of an ELF file.

    Each segment becomes a ``.text_XXXX`` section and a load program header, in address order.
    """
    if not 0 <= entry_point <= _U32_MASK:
        raise ValueError(f"entry point value out of range: {entry_point}")

    ordered = [(start, bytes(data)) for start, data in sorted(segments.items())]
    segment_count = len(ordered)
    section_count = segment_count + 2
    if section_count >= _SHN_LORESERVE:
        raise ValueError(f"too many segments for an ELF file: {segment_count}")

    names = [f".text_{start & _U64_MASK:04X}".encode("ascii") for start, _ in ordered]
    shstrtab_name = b".shstrtab"
    string_table, name_offsets = _build_string_table([*names, shstrtab_name])

    layout = _Layout()
    layout.reserve(_FILE_HEADER_SIZE, 1)
    program_headers_offset = layout.reserve(
        segment_count * _PROGRAM_HEADER_SIZE, _HEADER_ALIGN
    )
    data_offsets = [layout.reserve(len(data), 1) for _, data in ordered]
    string_table_offset = layout.reserve(len(string_table), 1)
    section_headers_offset = layout.reserve(section_count * _SECTION_HEADER_SIZE, _HEADER_ALIGN)

    buffer = bytearray()
    buffer += struct.pack(
        "<4s5B7sHHIIIIIHHHHHH",
        _ELF_MAGIC,
        _ELFCLASS32,
        _ELFDATA2LSB,
        _EV_CURRENT,
        _ELFOSABI_STANDALONE,
        0,
        bytes(7),
        _ET_EXEC,
        _EM_PDSP,
        _EV_CURRENT,
        entry_point,
        program_headers_offset,
        section_headers_offset,
        0,
        _FILE_HEADER_SIZE,
        _PROGRAM_HEADER_SIZE if segment_count else 0,
        segment_count,
        _SECTION_HEADER_SIZE,
        section_count,
        section_count - 1,
    )

    if segment_count:
        buffer += bytes(program_headers_offset - len(buffer))
    for (start, data), offset in zip(ordered, data_offsets):
        buffer += struct.pack(
            "<8I",
            _PT_LOAD,
            offset,
            start & _U32_MASK,
            start & _U32_MASK,
            len(data),
            len(data),
            0,
            1,
        )

    for (_, data), offset in zip(ordered, data_offsets):
        buffer += bytes(offset - len(buffer))
        buffer += data

    buffer += string_table

    buffer += bytes(_align(len(buffer), _HEADER_ALIGN) - len(buffer))
    buffer += bytes(_SECTION_HEADER_SIZE)
    flags = _SHF_ALLOC | _SHF_WRITE | _SHF_EXECINSTR
    for name, (start, data), offset in zip(names, ordered, data_offsets):
        buffer += _section_header(
            name_offsets[name], _SHT_PROGBITS, flags, start, offset, len(data), 1
        )
    buffer += _section_header(
        name_offsets[shstrtab_name],
        _SHT_STRTAB,
        0,
        0,
        string_table_offset,
        len(string_table),
        1,
    )

    if len(buffer) != layout.length:
        raise RuntimeError("ELF layout does not match the written data")

    output_stream.write(bytes(buffer))
    flush = getattr(output_stream, "flush", None)
    if flush is not None:
        flush()