"""BRR (Bit Rate Reduced, SNES ADPCM) blocks: headers, filters, encoding and decoding."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Iterable, Iterator, Sequence, Tuple

I16_MIN = -0x8000
I16_MAX = 0x7FFF

SAMPLES_PER_BLOCK = 16
BLOCK_SIZE = 9

Coefficient = Callable[[int], int]
WarmUp = Tuple[int, int]


def _wrap16(value: int) -> int:
    """Reduce an integer to a signed 16-bit value with two's complement wrapping."""
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _half(value: int) -> int:
    """Divide by two, truncating toward zero."""
    return -((-value) // 2) if value < 0 else value // 2


def _sign_extend_nybble(value: int) -> int:
    nybble = value & 0x0F
    return nybble - 16 if nybble >= 8 else nybble


def _as_warm_up(values: Iterable[int]) -> WarmUp:
    result = tuple(values)
    if len(result) != 2:
        raise ValueError(f"expected 2 warm-up samples, got {len(result)}")
    return result  # type: ignore[return-value]


def _as_block_samples(values: Iterable[int]) -> tuple[int, ...]:
    result = tuple(values)
    if len(result) != SAMPLES_PER_BLOCK:
        raise ValueError(f"expected {SAMPLES_PER_BLOCK} samples, got {len(result)}")
    return result


def coefficient_0(i: int) -> int:
    """Multiply by 0."""
    return _wrap16(i * 0)


def coefficient_15_16(i: int) -> int:
    """Multiply by 15/16 the way the hardware does."""
    return _wrap16(i + ((-i) >> 4))


def coefficient_negative_15_16(i: int) -> int:
    """Multiply by -15/16 the way the hardware does."""
    return _wrap16(-coefficient_15_16(i))


def coefficient_61_32(i: int) -> int:
    """Multiply by 61/32 the way the hardware does."""
    return _wrap16(i * 2 + ((-i * 3) >> 5))


def coefficient_115_64(i: int) -> int:
    """Multiply by 115/64 the way the hardware does."""
    return _wrap16(i * 2 + ((-i * 13) >> 6))


def coefficient_negative_13_16(i: int) -> int:
    """Multiply by -13/16 the way the hardware does."""
    return _wrap16(-i + ((i * 3) >> 4))


class CompressionLevel(IntEnum):
    """How hard the encoder tries to find good block parameters."""

    ONLY_FILTER_ZERO = 0
    ESTIMATE_SHIFT = 1
    MAX = 2

    def estimates_shift(self) -> bool:
        """Whether this level estimates the shift instead of brute-forcing it."""
        return self is not CompressionLevel.MAX


class LPCFilter(IntEnum):
    """The four linear predictive filters of the BRR format."""

    ZERO = 0
    ONE = 1
    TWO = 2
    THREE = 3

    def coefficients(self) -> tuple[Coefficient, Coefficient]:
        """Coefficient functions for the last and second-to-last sample."""
        return _FILTER_COEFFICIENTS[self]

    @classmethod
    def all_filters(cls) -> tuple["LPCFilter", ...]:
        """All filters in order."""
        return (cls.ZERO, cls.ONE, cls.TWO, cls.THREE)

    def __str__(self) -> str:
        return str(int(self))


_FILTER_COEFFICIENTS: dict[LPCFilter, tuple[Coefficient, Coefficient]] = {
    LPCFilter.ZERO: (coefficient_0, coefficient_0),
    LPCFilter.ONE: (coefficient_15_16, coefficient_0),
    LPCFilter.TWO: (coefficient_61_32, coefficient_negative_15_16),
    LPCFilter.THREE: (coefficient_115_64, coefficient_negative_13_16),
}


class LoopEndFlags(IntEnum):
    """Loop and end flags of a BRR block header."""

    NOTHING = 0
    END_WITHOUT_LOOPING = 1
    IGNORED = 2
    LOOP = 3

    @classmethod
    def from_bits(cls, is_end: bool, is_loop: bool) -> "LoopEndFlags":
        """Combine the end and loop bits into flags."""
        return cls((0b10 if is_loop else 0) | (1 if is_end else 0))

    def is_end(self) -> bool:
        """Whether the sample ends after this block."""
        return bool(self & 0b01)

    def is_raw_loop(self) -> bool:
        """Whether the loop bit is set, regardless of the end bit."""
        return bool(self & 0b10)

    def will_loop_afterwards(self) -> bool:
        """Whether playback actually jumps to the loop point after this block."""
        return self is LoopEndFlags.LOOP

    def __str__(self) -> str:
        text = ""
        if self.is_raw_loop():
            text += "loop"
        if self.will_loop_afterwards():
            text += ", "
        if self.is_end():
            text += "end"
        return text


@dataclass(frozen=True)
class Header:
    """A BRR header byte, laid out as ``ssssffle``."""

    real_shift: int = 0
    filter: LPCFilter = LPCFilter.ZERO
    flags: LoopEndFlags = LoopEndFlags.NOTHING

    @classmethod
    def from_byte(cls, data: int) -> "Header":
        """Parse a header byte."""
        if not 0 <= data <= 0xFF:
            raise ValueError(f"header byte out of range: {data}")
        return cls(
            real_shift=((data >> 4) & 0xF) - 1,
            filter=LPCFilter((data >> 2) & 0b11),
            flags=LoopEndFlags(data & 0b11),
        )

    def to_byte(self) -> int:
        """Pack this header into its byte."""
        return (
            (((self.real_shift + 1) & 0xFF) << 4) & 0xF0
            | ((int(self.filter) << 2) & 0b1100)
            | (int(self.flags) & 0b11)
        )

    def perform_shift(self, sample: int) -> int:
        """Apply this header's shift to a sample."""
        return Header.perform_shift_with(self.real_shift, sample)

    @staticmethod
    def perform_shift_with(shift: int, sample: int) -> int:
        """Shift left by ``shift``, or right for negative shifts, as a 16-bit value."""
        amount = abs(shift)
        if amount >= 16:
            return I16_MAX if sample > 0 else I16_MIN
        if shift == 0:
            return sample
        if shift > 0:
            return _wrap16(sample << amount)
        return sample >> amount


def _simulate_hardware_glitches(n: int) -> int:
    if 0x4000 <= n <= 0x7FFF:
        return n - 0x8000
    if -0x8000 <= n <= -0x4001:
        return n + 0x8000
    return n


def _necessary_shift_for(samples: Sequence[int]) -> int:
    bits = max(((~x).bit_length() if x < 0 else x.bit_length() for x in samples), default=0)
    return max(bits - 3, 0)


def _decode_samples(
    header: Header, encoded: Iterable[int], warm_up: WarmUp
) -> tuple[list[int], WarmUp]:
    first_coefficient, second_coefficient = header.filter.coefficients()
    last, before_last = warm_up
    decoded = []
    for value in encoded:
        shifted = header.perform_shift(_sign_extend_nybble(value))
        decimal = _wrap16(shifted + first_coefficient(last) + second_coefficient(before_last))
        sample = _simulate_hardware_glitches(decimal)
        before_last, last = last, sample
        decoded.append(_wrap16(sample * 2))
    return decoded, (last, before_last)


def split_bytes_into_nybbles(data: Iterable[int]) -> list[int]:
    """Split bytes into their nybbles, high nybble first."""
    nybbles = []
    for byte in data:
        nybbles.append((byte & 0xF0) >> 4)
        nybbles.append(byte & 0x0F)
    return nybbles


@dataclass(frozen=True)
class Block:
    """A 9-byte BRR block: one header byte and 16 four-bit samples."""

    header: Header = field(default_factory=Header)
    encoded_samples: tuple[int, ...] = (0,) * SAMPLES_PER_BLOCK

    def __post_init__(self) -> None:
        object.__setattr__(self, "encoded_samples", _as_block_samples(self.encoded_samples))

    @classmethod
    def from_bytes(cls, data: bytes | Sequence[int]) -> "Block":
        """Parse a raw 9-byte block."""
        raw = bytes(data)
        if len(raw) != BLOCK_SIZE:
            raise ValueError(f"a BRR block has {BLOCK_SIZE} bytes, got {len(raw)}")
        return cls(Header.from_byte(raw[0]), tuple(split_bytes_into_nybbles(raw[1:])))

    def to_bytes(self) -> bytes:
        """Pack this block into its 9 raw bytes."""
        samples = self.encoded_samples
        packed = (
            ((high << 4) & 0xF0) | (low & 0x0F) for high, low in zip(samples[0::2], samples[1::2])
        )
        return bytes([self.header.to_byte(), *packed])

    @classmethod
    def _encode_lpc(
        cls,
        warm_up_samples: Iterable[int],
        samples: Iterable[int],
        filter: LPCFilter,
        flags: LoopEndFlags,
        shift_function: Callable[[Sequence[int]], int],
    ) -> "Block":
        last, before_last = _as_warm_up(warm_up_samples)
        block_samples = _as_block_samples(samples)
        first_coefficient, second_coefficient = filter.coefficients()
        unshifted = []
        for sample in block_samples:
            reduced = _half(sample)
            unshifted.append(
                _wrap16(reduced - first_coefficient(last) - second_coefficient(before_last))
            )
            before_last, last = last, reduced
        shift = shift_function(unshifted)
        encoded = tuple(Header.perform_shift_with(-shift, value) & 0xFF for value in unshifted)
        return cls(Header(shift, filter, flags), encoded)

    @classmethod
    def encode(
        cls, warm_up_samples: Iterable[int], samples: Iterable[int], flags: LoopEndFlags
    ) -> "Block":
        """Encode with the most accurate filter and shift, found by brute force."""
        warm_up = _as_warm_up(warm_up_samples)
        block_samples = _as_block_samples(samples)
        candidates = (
            block
            for filter in LPCFilter.all_filters()
            for block in cls.encode_with_filter(warm_up, block_samples, filter, flags)
        )
        return min(candidates, key=lambda block: block.total_encode_error(warm_up, block_samples))

    def total_encode_error(
        self, warm_up_samples: Iterable[int], real_samples: Iterable[int]
    ) -> int:
        """Sum of absolute differences between this block decoded and the real samples."""
        decoded, _ = self.decode(warm_up_samples)
        return sum(abs(actual - expected) for actual, expected in zip(decoded, real_samples))

    @classmethod
    def encode_with_filter(
        cls,
        warm_up_samples: Iterable[int],
        samples: Iterable[int],
        filter: LPCFilter,
        flags: LoopEndFlags,
    ) -> Iterator["Block"]:
        """Yield encodings with the given filter for every shift from -1 to 11."""
        warm_up = _as_warm_up(warm_up_samples)
        block_samples = _as_block_samples(samples)
        for real_shift in range(-1, 12):
            yield cls.encode_exact(warm_up, block_samples, filter, flags, real_shift)

    @classmethod
    def encode_exact(
        cls,
        warm_up_samples: Iterable[int],
        samples: Iterable[int],
        filter: LPCFilter,
        flags: LoopEndFlags,
        real_shift: int,
    ) -> "Block":
        """Encode with exactly the given filter and shift."""
        return cls._encode_lpc(warm_up_samples, samples, filter, flags, lambda _: real_shift)

    @classmethod
    def encode_with_good_shift(
        cls, warm_up_samples: Iterable[int], samples: Iterable[int], flags: LoopEndFlags
    ) -> "Block":
        """Encode with the best filter, estimating the shift for each."""
        warm_up = _as_warm_up(warm_up_samples)
        block_samples = _as_block_samples(samples)
        candidates = (
            cls.encode_with_filter_good_shift(warm_up, block_samples, filter, flags)
            for filter in LPCFilter.all_filters()
        )
        return min(candidates, key=lambda block: block.total_encode_error(warm_up, block_samples))

    @classmethod
    def encode_with_filter_good_shift(
        cls,
        warm_up_samples: Iterable[int],
        samples: Iterable[int],
        filter: LPCFilter,
        flags: LoopEndFlags,
    ) -> "Block":
        """Encode with the given filter and an estimated non-wrapping shift."""
        return cls._encode_lpc(warm_up_samples, samples, filter, flags, _necessary_shift_for)

    @classmethod
    def encode_with_filter_0_good_shift(
        cls, warm_up_samples: Iterable[int], samples: Iterable[int], flags: LoopEndFlags
    ) -> "Block":
        """Encode with filter 0 and an estimated shift."""
        return cls.encode_with_filter_good_shift(warm_up_samples, samples, LPCFilter.ZERO, flags)

    @classmethod
    def encode_with_filter_best(
        cls,
        warm_up_samples: Iterable[int],
        samples: Iterable[int],
        filter: LPCFilter,
        flags: LoopEndFlags,
    ) -> "Block":
        """Encode with the given filter, brute-forcing the best shift."""
        warm_up = _as_warm_up(warm_up_samples)
        block_samples = _as_block_samples(samples)
        return min(
            cls.encode_with_filter(warm_up, block_samples, filter, flags),
            key=lambda block: block.total_encode_error(warm_up, block_samples),
        )

    def is_end(self) -> bool:
        """Whether playback ends or loops after this block."""
        return self.header.flags.is_end()

    def is_loop(self) -> bool:
        """Whether playback loops after this block."""
        return self.header.flags.will_loop_afterwards()

    def decode(self, warm_up_samples: Iterable[int]) -> tuple[tuple[int, ...], WarmUp]:
        """Decode the block; returns the samples and the warm-up for the next block."""
        decoded, warm_up = _decode_samples(
            self.header, self.encoded_samples, _as_warm_up(warm_up_samples)
        )
        return tuple(decoded), warm_up

    @classmethod
    def decode_block_third(
        cls, header: Header, encoded_samples: Iterable[int], warm_up_samples: Iterable[int]
    ) -> tuple[int, ...]:
        """Decode four encoded samples, as the hardware does per step."""
        encoded = tuple(encoded_samples)
        if len(encoded) != 4:
            raise ValueError(f"expected 4 encoded samples, got {len(encoded)}")
        decoded, _ = _decode_samples(header, encoded, _as_warm_up(warm_up_samples))
        return tuple(decoded)