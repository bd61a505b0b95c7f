"""Command-line tools for Bit Rate Reduced (BRR) / SNES ADPCM samples."""

from __future__ import annotations

import argparse
import re
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from spcbrr import dsp
from spcbrr.block import Block, CompressionLevel, Header, LoopEndFlags, LPCFilter
from spcbrr.stream import BrrError, decode_from_brr, encode_to_brr
from spcbrr.wav import WavError, read_wav_for_brr, write_wav

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_HEX = re.compile(r"\+?[0-9a-fA-F]+")

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _wrap16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _parse_u16_hex(text: str) -> int:
    if not _HEX.fullmatch(text):
        raise ValueError(f"invalid hexadecimal number: {text!r}")
    value = int(text, 16)
    if value > 0xFFFF:
        raise ValueError("number too large to fit in target type")
    return value


def parse_lenient_i16(string: str) -> int:
    """Parse a 16-bit signed integer, allowing wrap-around and ``0x``/``-0x`` hex numbers."""
    if _DECIMAL.fullmatch(string):
        value = int(string)
        if _I32_MIN <= value <= _I32_MAX:
            return _wrap16(value)
        decimal_error = ValueError("number too large to fit in target type")
    else:
        decimal_error = ValueError(f"invalid digit found in string: {string!r}")

    if string.startswith("0x"):
        return _wrap16(_parse_u16_hex(string[2:]))
    if string.startswith("-0x"):
        return _wrap16(-_wrap16(_parse_u16_hex(string[3:])))
    raise decimal_error


def _lenient_i16_argument(string: str) -> int:
    try:
        return parse_lenient_i16(string)
    except ValueError as error:
        raise argparse.ArgumentTypeError(str(error)) from error


def _u8_argument(string: str) -> int:
    if not re.fullmatch(r"\+?[0-9]+", string) or int(string) > 0xFF:
        raise argparse.ArgumentTypeError(f"invalid byte value: {string!r}")
    return int(string)


def _compression_argument(string: str) -> CompressionLevel:
    if not re.fullmatch(r"\+?[0-9]+", string) or int(string) > 0xFF:
        raise argparse.ArgumentTypeError(f"invalid compression level: {string!r}")
    try:
        return CompressionLevel(int(string))
    except ValueError as error:
        raise argparse.ArgumentTypeError("compression level out of range") from error


def _loop_point_argument(string: str) -> int:
    if not re.fullmatch(r"\+?[0-9]+", string):
        raise argparse.ArgumentTypeError(f"invalid loop point: {string!r}")
    return int(string)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brr", description="Bit Rate Reduced (BRR) / SNES ADPCM tools"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print detailed information even for non-interactive commands",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    encode_block = commands.add_parser("encode-block", help="Encode a single block of samples")
    encode_block.add_argument(
        "samples", nargs=16, type=_lenient_i16_argument, help="The samples to encode."
    )
    encode_block.add_argument(
        "-w",
        "--warm-up",
        nargs=2,
        type=_lenient_i16_argument,
        help="Override the previous samples to use for encoding",
    )

    decode_block = commands.add_parser("decode-block", help="Decode a single block of samples")
    decode_block.add_argument(
        "block", nargs=9, type=_u8_argument, help="The BRR-encoded block to decode"
    )
    decode_block.add_argument(
        "-w",
        "--warm-up",
        nargs=2,
        type=_lenient_i16_argument,
        help="Set the previous two decoded samples",
    )

    encode = commands.add_parser("encode", help="Encode a WAV file into a BRR file")
    encode.add_argument("input", type=Path, help="The WAV file to encode")
    encode.add_argument("output", type=Path, nargs="?", help="Output BRR file to write")
    encode.add_argument(
        "-c",
        "--compression",
        type=_compression_argument,
        default=CompressionLevel.MAX,
        help="Compression level to use",
    )
    encode.add_argument(
        "-f",
        "--filter",
        nargs="?",
        const="treble",
        choices=("treble", "brrtools"),
        help="Filter audio before encoding",
    )
    encode.add_argument("-l", "--loop-point", type=_loop_point_argument, help="Loop point")

    decode = commands.add_parser("decode", help="Decode a BRR file into a WAV file")
    decode.add_argument("input", type=Path, help="The BRR file to decode")
    decode.add_argument("output", type=Path, nargs="?", help="Output WAV file to write")
    decode.add_argument(
        "-f", "--filter", action="store_true", help="Emulate hardware filtering"
    )
    return parser


def _run_encode_block(samples: list[int], warm_up_arg: Optional[list[int]]) -> int:
    warm_up = tuple(warm_up_arg) if warm_up_arg else (0, 0)
    print(f"Encoding {list(samples)} as BRR block. Warm-up: {list(warm_up)}")
    for filter in LPCFilter.all_filters():
        print(f"filter {filter}:")
        for shift in range(-1, 12):
            block = Block.encode_exact(warm_up, samples, filter, LoopEndFlags.NOTHING, shift)
            decoded, _ = block.decode(warm_up)
            error = block.total_encode_error(warm_up, samples)
            print(
                f"  shift {block.header.real_shift:>2}:\n"
                f"    encode to: {list(block.encoded_samples)}\n"
                f"    decoded: {list(decoded)}\n"
                f"    error: {error:>10}"
            )
        best = Block.encode_with_filter_best(warm_up, samples, filter, LoopEndFlags.NOTHING)
        print(f"  optimal shift for this filter: {best.header.real_shift:>2}")
    actual = Block.encode(warm_up, samples, LoopEndFlags.NOTHING)
    print(f"optimal encoding: filter {actual.header.filter} shift {actual.header.real_shift}")
    return 0


def _run_decode_block(raw: list[int], warm_up_arg: Optional[list[int]]) -> int:
    warm_up = tuple(warm_up_arg) if warm_up_arg else (0, 0)
    print(f"Decoding BRR block [{', '.join(format(byte, 'X') for byte in raw)}]:")
    block = Block.from_bytes(raw)
    header: Header = block.header
    encoded = " ".join(format(sample, "X")[-1] for sample in block.encoded_samples)
    print(
        f"\tflags:           {header.flags}(raw: {int(header.flags):02b})\n"
        f"\tfilter:          {int(header.filter)}\n"
        f"\tshift:           {header.real_shift} (raw: {(header.real_shift + 1) & 0xFF:04b})\n"
        f"\tencoded samples: {encoded}"
    )
    decoded, _ = block.decode(warm_up)
    print(f"Decoded samples: {list(decoded)}")
    return 0


def _run_encode(arguments: argparse.Namespace) -> int:
    output = arguments.output or arguments.input.with_suffix(".brr")
    try:
        samples = read_wav_for_brr(arguments.input)
    except (OSError, WavError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1

    start = time.perf_counter()
    if arguments.filter == "brrtools":
        samples = dsp.apply_brrtools_treble_boost_filter(samples)
    elif arguments.filter == "treble":
        samples = dsp.apply_precise_treble_boost_filter(samples)
    loop_point = arguments.loop_point
    encoded = encode_to_brr(samples, loop_point, arguments.compression)
    duration = time.perf_counter() - start

    if arguments.verbose:
        sample_count = len(samples) + (-len(samples) % 16) if samples else 0
        print(
            f"Encoded {sample_count} samples to {len(encoded)} bytes BRR in "
            f"{int(duration * 1_000_000)} μs.",
            end="",
        )
        if loop_point is None:
            print()
        else:
            print(f" Loop point: {loop_point & ~0b1111}")

    try:
        handle = open(output, "wb")
    except OSError as error:
        print(f"error opening output: {error}", file=sys.stderr)
        return 1
    try:
        with handle:
            handle.write(encoded)
    except OSError as error:
        print(f"error while writing output: {error}", file=sys.stderr)
        return 1
    return 0


def _run_decode(arguments: argparse.Namespace) -> int:
    output = arguments.output or arguments.input.with_suffix(".wav")
    try:
        encoded = arguments.input.read_bytes()
        samples = decode_from_brr(encoded)
        if arguments.filter:
            samples = dsp.apply_hardware_gauss_filter(samples)
    except (OSError, BrrError, ValueError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1

    try:
        handle = open(output, "wb")
    except OSError as error:
        print(f"error opening output: {error}", file=sys.stderr)
        return 1
    try:
        with handle:
            write_wav(handle, samples)
    except OSError as error:
        print(f"error writing output: {error}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the BRR tool; returns the process exit code."""
    arguments = _build_parser().parse_args(argv)
    if arguments.command == "encode-block":
        return _run_encode_block(arguments.samples, arguments.warm_up)
    if arguments.command == "decode-block":
        return _run_decode_block(arguments.block, arguments.warm_up)
    if arguments.command == "encode":
        return _run_encode(arguments)
    return _run_decode(arguments)


if __name__ == "__main__":
    sys.exit(main())