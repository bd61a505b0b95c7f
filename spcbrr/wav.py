"""Reading WAV files as 16-bit mono samples and writing decoded samples as WAV."""

from __future__ import annotations

import math
import os
import struct
import wave
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Union

_I16_MIN = -0x8000
_I16_MAX = 0x7FFF
_I24_MAX = float(0xFFFFFF - 1)
_U8_HALF = 0xFF // 2
_U8_SCALE = _I16_MAX // 0xFF

_FORMAT_PCM = 1
_FORMAT_FLOAT = 3
_FORMAT_EXTENSIBLE = 0xFFFE

DSP_SAMPLE_RATE = 32_000

WavSource = Union[str, "os.PathLike[str]", BinaryIO]


class WavError(ValueError):
    """Raised when a WAV file cannot be read or converted."""


@dataclass(frozen=True)
class _WavSpec:
    format_tag: int
    channels: int
    bits_per_sample: int


def _saturate_to_i16(value: float) -> int:
    if math.isnan(value):
        return 0
    if value >= _I16_MAX:
        return _I16_MAX
    if value <= _I16_MIN:
        return _I16_MIN
    return int(value)


def _read_all(file: WavSource) -> bytes:
    if isinstance(file, (str, os.PathLike)):
        with open(file, "rb") as handle:
            return handle.read()
    return file.read()


def _parse_format(body: bytes) -> _WavSpec:
    if len(body) < 16:
        raise WavError("fmt chunk is too short")
    format_tag, channels, _rate, _byte_rate, _align, bits = struct.unpack_from("<HHIIHH", body)
    if format_tag == _FORMAT_EXTENSIBLE:
        if len(body) < 26:
            raise WavError("extensible fmt chunk is too short")
        (format_tag,) = struct.unpack_from("<H", body, 24)
    if format_tag not in (_FORMAT_PCM, _FORMAT_FLOAT):
        raise WavError(f"unsupported WAV format tag {format_tag}")
    if channels == 0:
        raise WavError("WAV file has no channels")
    return _WavSpec(format_tag, channels, bits)


def _parse_riff(data: bytes) -> tuple[_WavSpec, bytes]:
    if len(data) < 12 or data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        raise WavError("not a RIFF WAVE file")
    spec = None
    offset = 12
    while offset + 8 <= len(data):
        chunk_id = data[offset : offset + 4]
        (size,) = struct.unpack_from("<I", data, offset + 4)
        body = data[offset + 8 : offset + 8 + size]
        if len(body) < size:
            raise WavError(f"chunk {chunk_id!r} is truncated")
        if chunk_id == b"fmt ":
            spec = _parse_format(body)
        elif chunk_id == b"data":
            if spec is None:
                raise WavError("data chunk before fmt chunk")
            return spec, body
        offset += 8 + size + (size & 1)
    if spec is None:
        raise WavError("missing fmt chunk")
    raise WavError("missing data chunk")


def _whole(body: bytes, width: int) -> bytes:
    return body[: len(body) - len(body) % width]


def _convert_bit_depth_to_16_bits(spec: _WavSpec, body: bytes) -> list[int]:
    bits = spec.bits_per_sample
    is_float = spec.format_tag == _FORMAT_FLOAT
    if is_float and bits == 32:
        return [
            _saturate_to_i16(struct.unpack("<f", struct.pack("<f", value * _I16_MAX))[0])
            for (value,) in struct.iter_unpack("<f", _whole(body, 4))
        ]
    if is_float:
        raise WavError("Unsupported bit depth")
    if bits == 16:
        return [value for (value,) in struct.iter_unpack("<h", _whole(body, 2))]
    if bits == 8:
        return [(byte - 128 - _U8_HALF) * _U8_SCALE for byte in body]
    if bits == 24:
        usable = _whole(body, 3)
        return [
            _saturate_to_i16(
                int.from_bytes(usable[start : start + 3], "little", signed=True)
                / _I24_MAX
                * _I16_MAX
            )
            for start in range(0, len(usable), 3)
        ]
    raise WavError("Unsupported bit depth")


def _average_channels(data: list[int], channels: int) -> list[int]:
    result = []
    for start in range(0, len(data), channels):
        frame = data[start : start + channels]
        if len(frame) < channels:
            raise WavError(
                f"{channels}-channel audio, but last frame only contains {len(frame) - 1} samples"
            )
        total = sum(frame)
        average = abs(total) // channels
        result.append(-average if total < 0 else average)
    return result


def read_wav_for_brr(file: WavSource) -> list[int]:
    """Read a WAV file (path or binary file object) as 16-bit mono samples.

    There is no sample rate conversion.
    """
    spec, body = _parse_riff(_read_all(file))
    samples = _convert_bit_depth_to_16_bits(spec, body)
    if spec.channels > 1:
        return _average_channels(samples, spec.channels)
    return samples


def write_wav(file: WavSource, samples: Iterable[int]) -> None:
    """Write samples as a mono 16-bit WAV at the DSP sample rate."""
    data = list(samples)
    target = os.fspath(file) if isinstance(file, os.PathLike) else file
    with wave.open(target, "wb") as writer:
        writer.setnchannels(1)
        writer.setsampwidth(2)
        writer.setframerate(DSP_SAMPLE_RATE)
        writer.writeframes(struct.pack(f"<{len(data)}h", *data))