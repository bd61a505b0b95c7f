"""Encoding sample streams to BRR data and decoding BRR data back to samples."""

from __future__ import annotations

from typing import Iterable, Optional

from spcbrr.block import (
    BLOCK_SIZE,
    SAMPLES_PER_BLOCK,
    Block,
    CompressionLevel,
    LoopEndFlags,
    LPCFilter,
)


class BrrError(ValueError):
    """Raised when BRR data is malformed."""


def encode_to_brr(
    samples: Iterable[int],
    loop_point: Optional[int] = None,
    compression: CompressionLevel = CompressionLevel.MAX,
) -> bytes:
    """Encode 16-bit samples as BRR data.

    The samples are padded with leading zeros to a multiple of 16. Pass ``None`` as the
    loop point for a sample that does not loop.
    """
    data = list(samples)
    if not data:
        return b""
    compression = CompressionLevel(compression)

    if compression.estimates_shift():
        first_block_encoder = Block.encode_with_filter_good_shift
    else:
        first_block_encoder = Block.encode_with_filter_best
    main_block_encoder = {
        CompressionLevel.ONLY_FILTER_ZERO: Block.encode_with_filter_0_good_shift,
        CompressionLevel.ESTIMATE_SHIFT: Block.encode_with_good_shift,
        CompressionLevel.MAX: Block.encode,
    }[compression]

    padding = -len(data) % SAMPLES_PER_BLOCK
    data = [0] * padding + data
    chunks = [
        tuple(data[start : start + SAMPLES_PER_BLOCK])
        for start in range(0, len(data), SAMPLES_PER_BLOCK)
    ]
    first_chunk, remaining_chunks = chunks[0], chunks[1:]

    has_loop = loop_point is not None
    loop_block_start = None if loop_point is None else loop_point & ~0b1111
    first_block_is_end = len(remaining_chunks) == 1

    # The first block always uses filter 0 to prevent glitches.
    first_block = first_block_encoder(
        (0, 0),
        first_chunk,
        LPCFilter.ZERO,
        LoopEndFlags.from_bits(first_block_is_end, first_block_is_end and has_loop),
    )
    result = bytearray(first_block.to_bytes())
    warm_up = (first_chunk[-1], first_chunk[-2])

    for index, chunk in enumerate(remaining_chunks):
        if index == len(remaining_chunks) - 1:
            flags = LoopEndFlags.from_bits(True, has_loop)
        else:
            flags = LoopEndFlags.NOTHING

        if loop_block_start == index * SAMPLES_PER_BLOCK:
            block = Block.encode_with_filter_0_good_shift(warm_up, chunk, flags)
        else:
            block = main_block_encoder(warm_up, chunk, flags)

        result += block.to_bytes()
        warm_up = (chunk[-1], chunk[-2])

    return bytes(result)


def decode_from_brr(encoded: bytes | Iterable[int]) -> list[int]:
    """Decode all BRR blocks in the data, ignoring loop and end flags."""
    data = bytes(encoded)
    remainder = len(data) % BLOCK_SIZE
    if remainder:
        raise BrrError(f"Cut off BRR block (size {remainder}) at the end of the stream")

    decoded_samples: list[int] = []
    warm_up = (0, 0)
    for start in range(0, len(data), BLOCK_SIZE):
        block = Block.from_bytes(data[start : start + BLOCK_SIZE])
        samples, warm_up = block.decode(warm_up)
        decoded_samples.extend(samples)
    return decoded_samples